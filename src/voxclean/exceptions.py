"""Exceptions tipadas do voxclean.

Hierarquia:
    VoxcleanError (base)
    +-- ConfigError
    |   +-- FilterConfigError
    +-- AudioError
        +-- DecodeError
        +-- EncodeError
"""

from __future__ import annotations


class VoxcleanError(Exception):
    """Base para todas as exceptions do voxclean."""


# --- Configuracao ---


class ConfigError(VoxcleanError):
    """Erro de configuracao do pipeline de limpeza."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Configuracao invalida: {detail}")


class FilterConfigError(ConfigError):
    """Parametro de filtro invalido (frequencia >= Nyquist, valor nao finito)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        VoxcleanError.__init__(self, f"Filtro mal configurado: {detail}")


# --- Audio ---


class AudioError(VoxcleanError):
    """Erro relacionado a processamento de audio."""


class DecodeError(AudioError):
    """Audio de entrada nao pode ser decodificado (container invalido ou nao suportado)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Falha ao decodificar audio: {detail}")


class EncodeError(AudioError):
    """Sinal nao pode ser codificado em WAV (amostras nao finitas, tamanho excessivo)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Falha ao codificar WAV: {detail}")
