"""Configuracao do pipeline de limpeza de audio.

Os defaults correspondem a variante mais completa do pipeline
(trim + filtros + compressor + fade). Todos os valores sao ajustaveis.
"""

from __future__ import annotations

import math
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from voxclean.exceptions import ConfigError


class CleaningConfig(BaseModel):
    """Configuracao do pipeline de limpeza.

    Trim e fade sao toggleaveis; a cadeia de filtros (HPF -> LPF ->
    compressor) e sempre aplicada.
    """

    model_config = {"extra": "forbid"}

    # Silence trimming
    trim_silence: bool = True
    silence_threshold: float = 0.01
    window_ms: int = 50
    padding_windows: int = 4

    # Biquads
    highpass_hz: float = 80.0
    lowpass_hz: float = 20000.0
    filter_q: float = 0.7071
    clamp_to_nyquist: bool = True

    # Compressor
    compressor_threshold_db: float = -24.0
    compressor_knee_db: float = 30.0
    compressor_ratio: float = 8.0
    compressor_attack_s: float = 0.001
    compressor_release_s: float = 0.5

    # Fade
    fade: bool = True
    fade_seconds: float = 0.05

    @field_validator(
        "silence_threshold",
        "highpass_hz",
        "lowpass_hz",
        "filter_q",
        "compressor_threshold_db",
        "compressor_knee_db",
        "compressor_ratio",
        "compressor_attack_s",
        "compressor_release_s",
        "fade_seconds",
    )
    @classmethod
    def must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            msg = f"Valor deve ser finito, recebido {v}"
            raise ValueError(msg)
        return v

    @field_validator("highpass_hz", "lowpass_hz", "filter_q")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            msg = f"Valor deve ser positivo, recebido {v}"
            raise ValueError(msg)
        return v

    @field_validator(
        "silence_threshold",
        "compressor_knee_db",
        "compressor_attack_s",
        "compressor_release_s",
        "fade_seconds",
        "padding_windows",
    )
    @classmethod
    def must_not_be_negative(cls, v: float) -> float:
        if v < 0:
            msg = f"Valor nao pode ser negativo, recebido {v}"
            raise ValueError(msg)
        return v

    @field_validator("window_ms")
    @classmethod
    def window_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            msg = f"window_ms deve ser positivo, recebido {v}"
            raise ValueError(msg)
        return v

    @field_validator("compressor_ratio")
    @classmethod
    def ratio_at_least_one(cls, v: float) -> float:
        if v < 1.0:
            msg = f"compressor_ratio deve ser >= 1, recebido {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def highpass_below_lowpass(self) -> CleaningConfig:
        if self.highpass_hz >= self.lowpass_hz:
            msg = (
                f"highpass_hz ({self.highpass_hz}) deve ser menor que "
                f"lowpass_hz ({self.lowpass_hz})"
            )
            raise ValueError(msg)
        return self

    @property
    def window_seconds(self) -> float:
        """Duracao da janela de classificacao em segundos."""
        return self.window_ms / 1000.0

    @classmethod
    def from_yaml_path(cls, path: str | Path) -> CleaningConfig:
        """Carrega configuracao a partir de arquivo YAML."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Arquivo nao encontrado: {path}")

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Erro ao ler '{path}': {e}") from e

        return cls.from_yaml_string(raw, source_path=str(path))

    @classmethod
    def from_yaml_string(cls, raw: str, source_path: str = "<string>") -> CleaningConfig:
        """Carrega configuracao a partir de string YAML.

        Documento vazio resulta na configuracao default.
        """
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML invalido em '{source_path}': {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Conteudo de '{source_path}' deve ser um mapeamento")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"'{source_path}': {e}") from e
