"""Comando `voxclean clean` — limpa uma gravacao e grava WAV PCM 16-bit."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from voxclean.cli.main import cli
from voxclean.config.cleaning import CleaningConfig
from voxclean.exceptions import ConfigError
from voxclean.logging import configure_logging, reset_logging
from voxclean.preprocessing.audio_io import to_data_url
from voxclean.preprocessing.pipeline import AudioCleaningPipeline


def _build_config(config_path: Path | None, overrides: dict[str, object]) -> CleaningConfig:
    """Carrega config do YAML (ou default) e aplica overrides da linha de comando."""
    base = CleaningConfig.from_yaml_path(config_path) if config_path else CleaningConfig()
    if not overrides:
        return base
    try:
        return CleaningConfig.model_validate({**base.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def _default_output(input_path: Path, cleaned: bool) -> Path:
    suffix = ".wav" if cleaned else input_path.suffix
    return input_path.with_name(f"{input_path.stem}.clean{suffix}")


@cli.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(path_type=Path))
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Arquivo de saida. Default: <INPUT>.clean.wav",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Arquivo YAML com parametros do pipeline.",
)
@click.option("--no-trim", is_flag=True, help="Desabilita remocao de silencio.")
@click.option("--no-fade", is_flag=True, help="Desabilita fade-in/fade-out.")
@click.option("--threshold", type=float, default=None, help="Threshold de silencio (amplitude).")
@click.option("--highpass", type=float, default=None, help="Corte do high-pass em Hz.")
@click.option("--lowpass", type=float, default=None, help="Corte do low-pass em Hz.")
@click.option(
    "--data-url",
    is_flag=True,
    help="Imprime o resultado como data URL base64 em vez de gravar arquivo.",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Formato de log.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    show_default=True,
    help="Nivel de log.",
)
def clean(
    input_path: Path,
    output_path: Path | None,
    config_path: Path | None,
    no_trim: bool,
    no_fade: bool,
    threshold: float | None,
    highpass: float | None,
    lowpass: float | None,
    data_url: bool,
    log_format: str,
    log_level: str,
) -> None:
    """Limpa uma gravacao de voz (trim, filtros, compressor, fade) e gera WAV PCM 16-bit."""
    reset_logging()
    configure_logging(log_format=log_format, level=log_level)

    if not input_path.exists():
        click.echo(f"Erro: arquivo nao encontrado: {input_path}", err=True)
        sys.exit(1)

    overrides: dict[str, object] = {}
    if no_trim:
        overrides["trim_silence"] = False
    if no_fade:
        overrides["fade"] = False
    if threshold is not None:
        overrides["silence_threshold"] = threshold
    if highpass is not None:
        overrides["highpass_hz"] = highpass
    if lowpass is not None:
        overrides["lowpass_hz"] = lowpass

    try:
        config = _build_config(config_path, overrides)
    except ConfigError as e:
        click.echo(f"Erro: {e}", err=True)
        sys.exit(1)

    pipeline = AudioCleaningPipeline(config)
    result = asyncio.run(pipeline.clean(input_path.read_bytes()))

    if not result.cleaned:
        click.echo(
            f"Aviso: limpeza falhou ({result.error}); audio original mantido.",
            err=True,
        )

    if data_url:
        click.echo(to_data_url(result.audio, result.content_type))
        return

    destination = output_path or _default_output(input_path, result.cleaned)
    destination.write_bytes(result.audio)

    if result.cleaned:
        click.echo(
            f"{destination}: {result.input_frames} -> {result.output_frames} frames "
            f"({len(result.audio)} bytes)"
        )
    else:
        click.echo(f"{destination}: {len(result.audio)} bytes (sem limpeza)")
