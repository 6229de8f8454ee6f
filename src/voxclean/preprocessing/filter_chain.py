"""FilterChain — HPF -> LPF -> compressor, em serie, por canal."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from voxclean._types import FilterType
from voxclean.exceptions import DecodeError
from voxclean.preprocessing.biquad import BUTTERWORTH_Q, BiquadFilterStage
from voxclean.preprocessing.compressor import CompressorStage
from voxclean.preprocessing.stages import AudioStage

if TYPE_CHECKING:
    from voxclean._types import Signal
    from voxclean.config.cleaning import CleaningConfig


class FilterChain(AudioStage):
    """Cadeia fixa de filtros: high-pass, low-pass e compressor.

    A ordem e fixa. Cada filtro cria estado novo por canal a cada process(),
    entao a mesma cadeia pode atender invocacoes concorrentes.

    Args:
        highpass_hz: Corte do HPF em Hz (default: 80).
        lowpass_hz: Corte do LPF em Hz (default: 20000, clampado a Nyquist).
        q: Fator de qualidade dos dois biquads.
        clamp_to_nyquist: Clampar cortes >= Nyquist em vez de falhar.
        compressor: Compressor a usar. Default: CompressorStage().
    """

    def __init__(
        self,
        highpass_hz: float = 80.0,
        lowpass_hz: float = 20000.0,
        q: float = BUTTERWORTH_Q,
        clamp_to_nyquist: bool = True,
        compressor: CompressorStage | None = None,
    ) -> None:
        self._stages: list[AudioStage] = [
            BiquadFilterStage(FilterType.HIGHPASS, highpass_hz, q, clamp_to_nyquist),
            BiquadFilterStage(FilterType.LOWPASS, lowpass_hz, q, clamp_to_nyquist),
            compressor if compressor is not None else CompressorStage(),
        ]

    @classmethod
    def from_config(cls, config: CleaningConfig) -> FilterChain:
        """Monta a cadeia a partir de CleaningConfig."""
        return cls(
            highpass_hz=config.highpass_hz,
            lowpass_hz=config.lowpass_hz,
            q=config.filter_q,
            clamp_to_nyquist=config.clamp_to_nyquist,
            compressor=CompressorStage(
                threshold_db=config.compressor_threshold_db,
                knee_db=config.compressor_knee_db,
                ratio=config.compressor_ratio,
                attack_s=config.compressor_attack_s,
                release_s=config.compressor_release_s,
            ),
        )

    @property
    def name(self) -> str:
        """Nome identificador do stage."""
        return "filter_chain"

    @property
    def stages(self) -> list[AudioStage]:
        """Filtros da cadeia, na ordem de aplicacao."""
        return list(self._stages)

    def process(self, signal: Signal) -> Signal:
        """Aplica HPF, LPF e compressor em serie.

        Raises:
            DecodeError: Se o sinal contem NaN/Inf (decode upstream malformado).
        """
        if not np.all(np.isfinite(signal.samples)):
            raise DecodeError("sinal contem amostras nao finitas (NaN/Inf)")

        for stage in self._stages:
            signal = stage.process(signal)
        return signal
