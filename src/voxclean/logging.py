"""Structured logging para o voxclean.

structlog sobre stdlib logging. Formatos de saida:
- console: legivel para uso interativo da CLI (default)
- json: uma linha por evento, para coleta em lote

O contexto de cada invocacao do pipeline (invocation_id) vem de
structlog.contextvars; invocacoes concorrentes nao se misturam.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog

FORMAT_ENV = "VOXCLEAN_LOG_FORMAT"
LEVEL_ENV = "VOXCLEAN_LOG_LEVEL"

_configured = False
_handler: logging.Handler | None = None


def _event_processors() -> list[structlog.types.Processor]:
    """Processors aplicados a todo evento antes da renderizacao."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]


def _renderer_for(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configura logging estruturado.

    Chamadas repetidas nao tem efeito ate reset_logging().

    Args:
        log_format: "json" ou "console". Default: $VOXCLEAN_LOG_FORMAT ou "console".
        level: DEBUG, INFO, WARNING ou ERROR. Default: $VOXCLEAN_LOG_LEVEL ou "WARNING".
        stream: Destino dos logs. Default: stderr, separado da saida da CLI.
    """
    global _configured, _handler
    if _configured:
        return

    log_format = log_format or os.environ.get(FORMAT_ENV, "console")
    level_name = (level or os.environ.get(LEVEL_ENV, "WARNING")).upper()

    structlog.configure(
        processors=[
            *_event_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer_for(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.WARNING))

    _handler = handler
    _configured = True


def reset_logging() -> None:
    """Desfaz configure_logging: remove o handler instalado e limpa o contexto."""
    global _configured, _handler
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler = None
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    _configured = False


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Logger com o campo component vinculado (ex: "preprocessing.pipeline").

    Configura o logging com os defaults na primeira chamada.
    """
    configure_logging()
    return structlog.get_logger().bind(component=component)  # type: ignore[no-any-return]
