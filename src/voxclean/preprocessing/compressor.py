"""CompressorStage — compressor de dinamica feed-forward com soft knee.

Para cada amostra: nivel instantaneo em dB, reducao alvo pela curva
estatica com joelho quadratico, suavizacao exponencial assimetrica
(attack rapido quando a reducao aumenta, release lento quando diminui) e
aplicacao do ganho linear resultante.
"""

from __future__ import annotations

import math

import numpy as np

from voxclean._types import CompressorEnvelopeState, Signal
from voxclean.exceptions import FilterConfigError
from voxclean.preprocessing.stages import AudioStage

# Piso de nivel para evitar log10(0). Equivale a -200 dBFS.
_LEVEL_FLOOR = 1e-10


def time_coefficient(time_seconds: float, sample_rate: int) -> float:
    """Coeficiente do filtro de um polo para uma constante de tempo.

    Tempo zero resulta em coeficiente 0 (resposta instantanea).
    """
    if time_seconds <= 0:
        return 0.0
    return math.exp(-1.0 / (time_seconds * sample_rate))


def static_gain_reduction(
    level_db: np.ndarray,
    threshold_db: float,
    knee_db: float,
    ratio: float,
) -> np.ndarray:
    """Curva estatica do compressor: reducao alvo em dB (<= 0) por nivel.

    Abaixo de threshold - knee/2 nao ha reducao; acima de threshold + knee/2
    a reducao e (threshold - level) * (1 - 1/ratio); dentro do joelho a
    transicao e quadratica e continua nas duas bordas.
    """
    overshoot = level_db - threshold_db
    slope = 1.0 / ratio - 1.0
    reduction = np.zeros_like(level_db, dtype=np.float64)

    half_knee = knee_db / 2.0
    if knee_db > 0:
        in_knee = np.abs(overshoot) <= half_knee
        reduction[in_knee] = slope * (overshoot[in_knee] + half_knee) ** 2 / (2.0 * knee_db)
    above = overshoot > half_knee
    reduction[above] = slope * overshoot[above]

    return reduction


class CompressorStage(AudioStage):
    """Compressor de dinamica aplicado a cada canal independentemente.

    Args:
        threshold_db: Nivel (dBFS) onde a compressao comeca (default: -24).
        knee_db: Largura do joelho em dB (default: 30).
        ratio: Razao de compressao acima do joelho (default: 8).
        attack_s: Constante de tempo quando o ganho precisa cair (default: 0.001).
        release_s: Constante de tempo quando o ganho precisa subir (default: 0.5).

    Raises:
        FilterConfigError: Se algum parametro for nao finito ou fora da faixa.
    """

    def __init__(
        self,
        threshold_db: float = -24.0,
        knee_db: float = 30.0,
        ratio: float = 8.0,
        attack_s: float = 0.001,
        release_s: float = 0.5,
    ) -> None:
        params = {
            "threshold_db": threshold_db,
            "knee_db": knee_db,
            "ratio": ratio,
            "attack_s": attack_s,
            "release_s": release_s,
        }
        for param, value in params.items():
            if not math.isfinite(value):
                raise FilterConfigError(f"{param} deve ser finito, recebido {value}")
        if ratio < 1.0:
            raise FilterConfigError(f"ratio deve ser >= 1, recebido {ratio}")
        if knee_db < 0:
            raise FilterConfigError(f"knee_db nao pode ser negativo, recebido {knee_db}")
        if attack_s < 0 or release_s < 0:
            raise FilterConfigError(
                f"attack/release nao podem ser negativos (attack={attack_s}, release={release_s})"
            )

        self._threshold_db = threshold_db
        self._knee_db = knee_db
        self._ratio = ratio
        self._attack_s = attack_s
        self._release_s = release_s

    @property
    def name(self) -> str:
        """Nome identificador do stage."""
        return "compressor"

    def apply(
        self,
        samples: np.ndarray,
        sample_rate: int,
        state: CompressorEnvelopeState,
    ) -> np.ndarray:
        """Comprime um bloco de amostras de um canal.

        Args:
            samples: Amostras de um canal (1-D).
            sample_rate: Sample rate em Hz (define os coeficientes de tempo).
            state: Envelope de ganho carregado entre amostras; modificado in-place.

        Returns:
            Amostras comprimidas float32 (novo array).
        """
        if len(samples) == 0:
            return np.array(samples, dtype=np.float32)

        x = np.asarray(samples, dtype=np.float64)
        level_db = 20.0 * np.log10(np.maximum(np.abs(x), _LEVEL_FLOOR))
        target_db = static_gain_reduction(
            level_db, self._threshold_db, self._knee_db, self._ratio
        )

        attack_coef = time_coefficient(self._attack_s, sample_rate)
        release_coef = time_coefficient(self._release_s, sample_rate)

        # Recursivo e nao-linear (coeficiente depende da direcao): nao vetoriza.
        gain_db = state.gain_db
        smoothed: list[float] = []
        for target in target_db.tolist():
            coef = attack_coef if target < gain_db else release_coef
            gain_db = coef * gain_db + (1.0 - coef) * target
            smoothed.append(gain_db)
        state.gain_db = gain_db

        gain = np.power(10.0, np.asarray(smoothed) / 20.0)
        return (x * gain).astype(np.float32)

    def process(self, signal: Signal) -> Signal:
        """Comprime cada canal com envelope proprio, zerado a cada chamada."""
        if signal.frames == 0:
            return signal.with_samples(signal.samples.copy())

        compressed = np.empty_like(signal.samples, dtype=np.float32)
        for channel in range(signal.channels):
            compressed[channel] = self.apply(
                signal.samples[channel], signal.sample_rate, CompressorEnvelopeState()
            )

        return signal.with_samples(compressed)
