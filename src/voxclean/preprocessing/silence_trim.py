"""SilenceTrimStage — remove trechos silenciosos por energia.

Classifica janelas de 50ms como voz/silencio pela amplitude media absoluta
do primeiro canal, dilata as regioes de voz (+-4 janelas, ~200ms) para
preservar onset/decay e pausas curtas, e reconstroi o sinal apenas com os
frames das janelas mantidas. Todos os canais sao cortados pelos mesmos
indices de frame.
"""

from __future__ import annotations

import numpy as np

from voxclean._types import Signal
from voxclean.logging import get_logger
from voxclean.preprocessing.stages import AudioStage

logger = get_logger("preprocessing.silence_trim")

DEFAULT_THRESHOLD = 0.01
DEFAULT_WINDOW_SECONDS = 0.05
DEFAULT_PADDING_WINDOWS = 4


def window_size(sample_rate: int, window_seconds: float = DEFAULT_WINDOW_SECONDS) -> int:
    """Tamanho da janela em frames: floor(sample_rate * window_seconds), minimo 1."""
    return max(1, int(sample_rate * window_seconds))


def classify_windows(channel: np.ndarray, window: int, threshold: float) -> np.ndarray:
    """Classifica janelas consecutivas como voz (True) ou silencio.

    A ultima janela pode ser parcial; sua media usa apenas os frames
    disponiveis.

    Args:
        channel: Amostras de um canal (1-D).
        window: Tamanho da janela em frames.
        threshold: Amplitude media absoluta acima da qual a janela e voz.

    Returns:
        Array bool com uma entrada por janela.
    """
    n_frames = len(channel)
    n_windows = -(-n_frames // window)
    magnitude = np.abs(channel.astype(np.float64))

    padded = np.zeros(n_windows * window, dtype=np.float64)
    padded[:n_frames] = magnitude
    sums = padded.reshape(n_windows, window).sum(axis=1)

    counts = np.full(n_windows, window, dtype=np.float64)
    counts[-1] = n_frames - (n_windows - 1) * window

    return (sums / counts) > threshold


def dilate(voiced: np.ndarray, padding: int) -> np.ndarray:
    """Marca como voz toda janela a ate `padding` janelas de uma janela de voz."""
    if padding <= 0 or not voiced.any():
        return voiced.copy()
    kernel = np.ones(2 * padding + 1, dtype=np.int64)
    spread = np.convolve(voiced.astype(np.int64), kernel, mode="full")
    return spread[padding : padding + len(voiced)] > 0


def trim(
    signal: Signal,
    threshold: float = DEFAULT_THRESHOLD,
    window_seconds: float = DEFAULT_WINDOW_SECONDS,
    padding_windows: int = DEFAULT_PADDING_WINDOWS,
) -> Signal:
    """Remove janelas silenciosas do sinal.

    Se nenhuma janela for classificada como voz (entrada silenciosa ou
    threshold mal configurado), retorna o sinal original sem corte; o
    resultado nunca e vazio por causa do trim.

    Args:
        signal: Sinal de entrada.
        threshold: Amplitude media absoluta minima para voz (~ -40 dBFS).
        window_seconds: Duracao de cada janela.
        padding_windows: Janelas de contexto mantidas antes/depois da voz.

    Returns:
        Novo Signal com apenas os frames das janelas de voz (dilatadas).
    """
    if signal.frames == 0:
        return signal.with_samples(signal.samples.copy())

    window = window_size(signal.sample_rate, window_seconds)
    voiced = classify_windows(signal.samples[0], window, threshold)

    if not voiced.any():
        logger.debug("no_voice_detected", windows=len(voiced), threshold=threshold)
        return signal.with_samples(signal.samples.copy())

    kept = dilate(voiced, padding_windows)
    frame_mask = np.repeat(kept, window)[: signal.frames]
    trimmed = signal.samples[:, frame_mask]

    logger.debug(
        "silence_trimmed",
        windows=len(voiced),
        voiced_windows=int(voiced.sum()),
        kept_windows=int(kept.sum()),
        frames_in=signal.frames,
        frames_out=int(trimmed.shape[1]),
    )

    return signal.with_samples(trimmed)


class SilenceTrimStage(AudioStage):
    """Stage de remocao de silencio por energia.

    Args:
        threshold: Amplitude media absoluta minima para voz (default: 0.01).
        window_seconds: Duracao da janela de classificacao (default: 0.05).
        padding_windows: Janelas de contexto em torno da voz (default: 4).
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        padding_windows: int = DEFAULT_PADDING_WINDOWS,
    ) -> None:
        self._threshold = threshold
        self._window_seconds = window_seconds
        self._padding_windows = padding_windows

    @property
    def name(self) -> str:
        """Nome identificador do stage."""
        return "silence_trim"

    def process(self, signal: Signal) -> Signal:
        """Remove silencio do sinal."""
        return trim(
            signal,
            threshold=self._threshold,
            window_seconds=self._window_seconds,
            padding_windows=self._padding_windows,
        )
