"""Pipeline de limpeza de audio.

Decode -> [Silence Trim] -> Filter Chain (HPF, LPF, compressor) -> [Fade] -> WAV PCM 16-bit.

O pipeline e fail-open: qualquer erro interno e logado e os bytes
originais sao devolvidos sem modificacao. Uma gravacao sem limpeza e sempre
preferivel a perder a gravacao.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from voxclean._types import CleaningResult
from voxclean.config.cleaning import CleaningConfig
from voxclean.logging import get_logger
from voxclean.preprocessing.audio_io import AudioDecoder, default_decoder, encode_wav
from voxclean.preprocessing.fade import FadeStage
from voxclean.preprocessing.filter_chain import FilterChain
from voxclean.preprocessing.silence_trim import SilenceTrimStage

if TYPE_CHECKING:
    from voxclean._types import Signal
    from voxclean.preprocessing.stages import AudioStage

logger = get_logger("preprocessing.pipeline")

DecoderFactory = Callable[[], AudioDecoder]


def build_stages(config: CleaningConfig) -> list[AudioStage]:
    """Monta a lista de stages na ordem fixa a partir da configuracao."""
    stages: list[AudioStage] = []
    if config.trim_silence:
        stages.append(
            SilenceTrimStage(
                threshold=config.silence_threshold,
                window_seconds=config.window_seconds,
                padding_windows=config.padding_windows,
            )
        )
    stages.append(FilterChain.from_config(config))
    if config.fade:
        stages.append(FadeStage(fade_seconds=config.fade_seconds))
    return stages


class AudioCleaningPipeline:
    """Pipeline de limpeza de gravacoes de microfone.

    Recebe bytes de audio em qualquer formato suportado pelo decoder,
    aplica os stages em sequencia e retorna WAV PCM 16-bit.

    Nenhum estado e compartilhado entre invocacoes: cada chamada de clean()
    abre seu proprio decoder e cada stage cria estado de processamento novo.
    Invocacoes concorrentes sobre gravacoes diferentes sao seguras.

    Args:
        config: Configuracao do pipeline. Default: CleaningConfig().
        stages: Stages a executar. Se None, derivados de config.
        decoder_factory: Cria um decoder por invocacao. Default: default_decoder.
    """

    def __init__(
        self,
        config: CleaningConfig | None = None,
        stages: list[AudioStage] | None = None,
        decoder_factory: DecoderFactory | None = None,
    ) -> None:
        self._config = config if config is not None else CleaningConfig()
        self._stages = stages if stages is not None else build_stages(self._config)
        self._decoder_factory = decoder_factory if decoder_factory is not None else default_decoder

    @property
    def config(self) -> CleaningConfig:
        """Configuracao do pipeline."""
        return self._config

    @property
    def stages(self) -> list[AudioStage]:
        """Lista de stages do pipeline."""
        return list(self._stages)

    def process_signal(self, signal: Signal) -> Signal:
        """Aplica todos os stages a um sinal ja decodificado.

        Diferente de clean(), erros propagam.
        """
        for stage in self._stages:
            logger.debug(
                "stage_start",
                stage=stage.name,
                frames=signal.frames,
                channels=signal.channels,
            )
            signal = stage.process(signal)
            logger.debug("stage_complete", stage=stage.name, frames=signal.frames)
        return signal

    async def clean(self, audio_bytes: bytes) -> CleaningResult:
        """Limpa uma gravacao.

        Args:
            audio_bytes: Bytes do audio capturado (qualquer container suportado).

        Returns:
            CleaningResult com o WAV limpo, ou com os bytes originais
            (cleaned=False) se qualquer etapa falhar.
        """
        with structlog.contextvars.bound_contextvars(invocation_id=uuid.uuid4().hex[:12]):
            try:
                async with self._decoder_factory() as decoder:
                    signal = await decoder.decode(audio_bytes)
                processed = self.process_signal(signal)
                wav_bytes = encode_wav(processed)
            except Exception as exc:
                logger.warning(
                    "cleaning_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    input_bytes=len(audio_bytes),
                )
                return CleaningResult(audio=audio_bytes, cleaned=False, error=str(exc))

            logger.info(
                "audio_cleaned",
                channels=processed.channels,
                sample_rate=processed.sample_rate,
                duration_in_s=round(signal.duration, 3),
                duration_out_s=round(processed.duration, 3),
                output_bytes=len(wav_bytes),
            )

        return CleaningResult(
            audio=wav_bytes,
            cleaned=True,
            input_frames=signal.frames,
            output_frames=processed.frames,
        )

    async def process(self, audio_bytes: bytes) -> bytes:
        """Limpa uma gravacao e retorna apenas os bytes (WAV ou originais)."""
        result = await self.clean(audio_bytes)
        return result.audio


async def clean_audio(audio_bytes: bytes, config: CleaningConfig | None = None) -> bytes:
    """Atalho: limpa uma gravacao com o pipeline default."""
    return await AudioCleaningPipeline(config).process(audio_bytes)
