"""FadeStage — fade-in/fade-out linear para eliminar cliques nas bordas."""

from __future__ import annotations

import math

import numpy as np

from voxclean._types import Signal
from voxclean.exceptions import ConfigError
from voxclean.preprocessing.stages import AudioStage

DEFAULT_FADE_SECONDS = 0.05


def fade_envelope(frames: int, fade_frames: int) -> np.ndarray:
    """Envelope de ganho: rampa 0->1 no inicio, 1->0 no fim, 1 no meio.

    A primeira e a ultima amostra recebem ganho 0. fade_frames e limitado a
    metade do comprimento para que as rampas nunca se sobreponham.
    """
    envelope = np.ones(frames, dtype=np.float32)
    fade_frames = min(fade_frames, frames // 2)
    if fade_frames <= 0:
        return envelope

    ramp = np.arange(fade_frames, dtype=np.float32) / fade_frames
    envelope[:fade_frames] = ramp
    envelope[frames - fade_frames :] = ramp[::-1]
    return envelope


def apply_fade(signal: Signal, fade_seconds: float = DEFAULT_FADE_SECONDS) -> Signal:
    """Aplica fade linear de entrada e saida, igual em todos os canais.

    Args:
        signal: Sinal de entrada.
        fade_seconds: Duracao de cada rampa em segundos.

    Returns:
        Novo Signal com o envelope aplicado.

    Raises:
        ConfigError: Se fade_seconds for negativo ou nao finito.
    """
    if not math.isfinite(fade_seconds) or fade_seconds < 0:
        raise ConfigError(f"fade_seconds deve ser finito e >= 0, recebido {fade_seconds}")

    fade_frames = int(round(fade_seconds * signal.sample_rate))
    envelope = fade_envelope(signal.frames, fade_frames)
    return signal.with_samples(signal.samples * envelope)


class FadeStage(AudioStage):
    """Stage de fade-in/fade-out.

    Args:
        fade_seconds: Duracao de cada rampa (default: 0.05).
    """

    def __init__(self, fade_seconds: float = DEFAULT_FADE_SECONDS) -> None:
        self._fade_seconds = fade_seconds

    @property
    def name(self) -> str:
        """Nome identificador do stage."""
        return "fade"

    def process(self, signal: Signal) -> Signal:
        """Aplica o envelope de fade."""
        return apply_fade(signal, self._fade_seconds)
