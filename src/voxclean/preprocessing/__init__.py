"""Audio Cleaning Pipeline.

Limpa gravacoes de microfone antes do envio para transcricao.
Pipeline: Decode -> [Silence Trim] -> HPF -> LPF -> Compressor -> [Fade] -> Output WAV PCM 16-bit.
"""

from __future__ import annotations

from voxclean.preprocessing.pipeline import AudioCleaningPipeline, clean_audio
from voxclean.preprocessing.stages import AudioStage

__all__ = ["AudioCleaningPipeline", "AudioStage", "clean_audio"]
