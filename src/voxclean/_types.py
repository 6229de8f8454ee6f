"""Tipos fundamentais do voxclean.

Este modulo define enums e dataclasses usados por todos os stages do
pipeline de limpeza. Alteracoes aqui impactam o sistema inteiro.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class FilterType(Enum):
    """Tipo de filtro biquad (RBJ Audio EQ Cookbook)."""

    HIGHPASS = "highpass"
    LOWPASS = "lowpass"


@dataclass(frozen=True, slots=True, eq=False)
class Signal:
    """Audio PCM linear decodificado.

    Amostras float32 em layout (canais, frames). Todos os canais tem o mesmo
    comprimento por construcao. O comprimento do sinal e medido em frames
    (uma amostra por canal).

    Cada stage recebe um Signal e devolve um novo Signal com array proprio;
    o array de entrada nunca e modificado in-place.
    """

    sample_rate: int
    samples: np.ndarray

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            msg = f"sample_rate deve ser positivo, recebido {self.sample_rate}"
            raise ValueError(msg)
        if self.samples.ndim != 2:
            msg = f"samples deve ter shape (canais, frames), recebido ndim={self.samples.ndim}"
            raise ValueError(msg)
        if self.samples.shape[0] < 1:
            msg = "Signal precisa de pelo menos um canal"
            raise ValueError(msg)

    @classmethod
    def from_mono(cls, audio: np.ndarray, sample_rate: int) -> Signal:
        """Cria Signal de um canal a partir de array 1-D."""
        return cls(sample_rate, np.asarray(audio, dtype=np.float32).reshape(1, -1))

    @classmethod
    def from_interleaved(cls, audio: np.ndarray, sample_rate: int, channels: int) -> Signal:
        """Cria Signal a partir de amostras intercaladas (c0, c1, c0, c1, ...)."""
        frames = np.asarray(audio, dtype=np.float32).reshape(-1, channels)
        return cls(sample_rate, np.ascontiguousarray(frames.T))

    @property
    def channels(self) -> int:
        """Numero de canais."""
        return int(self.samples.shape[0])

    @property
    def frames(self) -> int:
        """Comprimento em frames."""
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        """Duracao em segundos."""
        return self.frames / self.sample_rate

    def with_samples(self, samples: np.ndarray) -> Signal:
        """Novo Signal com as amostras dadas e o mesmo sample rate."""
        return Signal(self.sample_rate, np.asarray(samples, dtype=np.float32))


@dataclass(frozen=True, slots=True)
class BiquadCoefficients:
    """Coeficientes normalizados (a0 == 1) de um biquad."""

    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    @property
    def b(self) -> tuple[float, float, float]:
        return (self.b0, self.b1, self.b2)

    @property
    def a(self) -> tuple[float, float, float]:
        return (1.0, self.a1, self.a2)


@dataclass(slots=True)
class FilterState:
    """Historico de 2a ordem de um biquad: duas ultimas entradas e saidas.

    x1/y1 sao as amostras mais recentes. Um estado novo por canal, por filtro
    e por invocacao, nunca compartilhado.
    """

    x1: float = 0.0
    x2: float = 0.0
    y1: float = 0.0
    y2: float = 0.0


@dataclass(slots=True)
class CompressorEnvelopeState:
    """Reducao de ganho corrente (dB, <= 0) carregada amostra a amostra."""

    gain_db: float = 0.0


@dataclass(frozen=True, slots=True)
class CleaningResult:
    """Resultado de uma invocacao do pipeline de limpeza.

    Quando cleaned e False, audio contem os bytes originais sem modificacao
    e error descreve a falha que causou o fallback.
    """

    audio: bytes
    cleaned: bool
    error: str | None = None
    input_frames: int = 0
    output_frames: int = 0

    @property
    def content_type(self) -> str:
        """MIME type do audio retornado."""
        return "audio/wav" if self.cleaned else "application/octet-stream"
