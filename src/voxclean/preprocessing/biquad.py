"""Filtros biquad (RBJ Audio EQ Cookbook) para o pipeline de limpeza.

HPF remove rumble e DC abaixo da banda de fala; LPF remove chiado acima
dela. Coeficientes vem da transformada bilinear do prototipo analogico de
2a ordem; a equacao de diferencas e aplicada via scipy.signal.lfilter,
carregando FilterState entre blocos.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.signal import lfilter, lfiltic

from voxclean._types import BiquadCoefficients, FilterState, FilterType, Signal
from voxclean.exceptions import FilterConfigError
from voxclean.logging import get_logger
from voxclean.preprocessing.stages import AudioStage

logger = get_logger("preprocessing.biquad")

BUTTERWORTH_Q = 0.7071

# Fracao de Nyquist usada quando a frequencia de corte e clampada.
_NYQUIST_CLAMP_FRACTION = 0.95


def design_biquad(
    filter_type: FilterType,
    frequency_hz: float,
    q: float,
    sample_rate: int,
) -> BiquadCoefficients:
    """Calcula coeficientes normalizados de um biquad HPF/LPF.

    Args:
        filter_type: HIGHPASS ou LOWPASS.
        frequency_hz: Frequencia de corte em Hz (0 < f < Nyquist).
        q: Fator de qualidade (0.7071 = Butterworth).
        sample_rate: Sample rate do sinal em Hz.

    Returns:
        Coeficientes com a0 normalizado para 1.

    Raises:
        FilterConfigError: Se algum parametro for nao finito ou fora da faixa estavel.
    """
    if sample_rate <= 0:
        raise FilterConfigError(f"sample rate deve ser positivo, recebido {sample_rate}")
    nyquist = sample_rate / 2.0
    if not math.isfinite(frequency_hz) or frequency_hz <= 0:
        raise FilterConfigError(f"frequencia de corte invalida: {frequency_hz}")
    if frequency_hz >= nyquist:
        raise FilterConfigError(
            f"frequencia de corte {frequency_hz}Hz >= Nyquist ({nyquist}Hz) "
            f"para sample rate {sample_rate}Hz"
        )
    if not math.isfinite(q) or q <= 0:
        raise FilterConfigError(f"Q deve ser positivo e finito, recebido {q}")

    w0 = 2.0 * math.pi * frequency_hz / sample_rate
    cos_w0 = math.cos(w0)
    alpha = math.sin(w0) / (2.0 * q)

    if filter_type is FilterType.HIGHPASS:
        b0 = (1.0 + cos_w0) / 2.0
        b1 = -(1.0 + cos_w0)
    else:
        b0 = (1.0 - cos_w0) / 2.0
        b1 = 1.0 - cos_w0
    b2 = b0

    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha

    return BiquadCoefficients(
        b0=b0 / a0,
        b1=b1 / a0,
        b2=b2 / a0,
        a1=a1 / a0,
        a2=a2 / a0,
    )


class BiquadFilter:
    """Biquad com coeficientes fixos para um sample rate.

    Coeficientes sao derivados uma vez na construcao. O historico vive em
    FilterState, passado a cada apply(), de modo que o mesmo filtro pode
    processar varios canais e invocacoes sem compartilhar estado.
    """

    def __init__(
        self,
        filter_type: FilterType,
        frequency_hz: float,
        q: float,
        sample_rate: int,
    ) -> None:
        self.filter_type = filter_type
        self.frequency_hz = frequency_hz
        self.sample_rate = sample_rate
        self.coefficients = design_biquad(filter_type, frequency_hz, q, sample_rate)
        self._b = np.array(self.coefficients.b, dtype=np.float64)
        self._a = np.array(self.coefficients.a, dtype=np.float64)

    def apply(self, samples: np.ndarray, state: FilterState) -> np.ndarray:
        """Filtra um bloco de amostras e atualiza o estado.

        Processar um sinal em blocos consecutivos com o mesmo FilterState
        produz o mesmo resultado que processa-lo de uma vez.

        Args:
            samples: Amostras de um canal (1-D).
            state: Historico do filtro; modificado in-place.

        Returns:
            Amostras filtradas float32 (novo array).
        """
        if len(samples) == 0:
            return np.array(samples, dtype=np.float32)

        x = np.asarray(samples, dtype=np.float64)
        zi = lfiltic(self._b, self._a, y=[state.y1, state.y2], x=[state.x1, state.x2])
        y, _ = lfilter(self._b, self._a, x, zi=zi)

        x_tail = np.concatenate(([state.x2, state.x1], x[-2:]))[-2:]
        y_tail = np.concatenate(([state.y2, state.y1], y[-2:]))[-2:]
        state.x2, state.x1 = float(x_tail[0]), float(x_tail[1])
        state.y2, state.y1 = float(y_tail[0]), float(y_tail[1])

        return y.astype(np.float32)


class BiquadFilterStage(AudioStage):
    """Aplica um biquad HPF ou LPF a cada canal do sinal.

    O filtro e lazy-computed e cacheado por sample rate. Com
    clamp_to_nyquist=True, uma frequencia de corte >= Nyquist (ex: LPF de
    20kHz num sinal de 16kHz) e reduzida para 0.95 * Nyquist.

    Args:
        filter_type: HIGHPASS ou LOWPASS.
        frequency_hz: Frequencia de corte em Hz.
        q: Fator de qualidade (default: Butterworth).
        clamp_to_nyquist: Clampar em vez de rejeitar corte acima de Nyquist.
    """

    def __init__(
        self,
        filter_type: FilterType,
        frequency_hz: float,
        q: float = BUTTERWORTH_Q,
        clamp_to_nyquist: bool = True,
    ) -> None:
        self._filter_type = filter_type
        self._frequency_hz = frequency_hz
        self._q = q
        self._clamp_to_nyquist = clamp_to_nyquist
        self._cached_filter: BiquadFilter | None = None

    @property
    def name(self) -> str:
        """Nome identificador do stage."""
        return self._filter_type.value

    def _get_filter(self, sample_rate: int) -> BiquadFilter:
        """Retorna o filtro para o sample rate, recalculando se necessario."""
        cached = self._cached_filter
        if cached is not None and cached.sample_rate == sample_rate:
            return cached

        frequency_hz = self._frequency_hz
        nyquist = sample_rate / 2.0
        if self._clamp_to_nyquist and math.isfinite(frequency_hz) and frequency_hz >= nyquist:
            frequency_hz = nyquist * _NYQUIST_CLAMP_FRACTION
            logger.debug(
                "corner_clamped",
                filter=self._filter_type.value,
                requested_hz=self._frequency_hz,
                clamped_hz=round(frequency_hz, 1),
                sample_rate=sample_rate,
            )
        cached = BiquadFilter(self._filter_type, frequency_hz, self._q, sample_rate)
        self._cached_filter = cached
        return cached

    def process(self, signal: Signal) -> Signal:
        """Filtra cada canal com estado proprio, zerado a cada chamada."""
        if signal.frames == 0:
            return signal.with_samples(signal.samples.copy())

        biquad = self._get_filter(signal.sample_rate)
        filtered = np.empty_like(signal.samples, dtype=np.float32)
        for channel in range(signal.channels):
            filtered[channel] = biquad.apply(signal.samples[channel], FilterState())

        return signal.with_samples(filtered)
