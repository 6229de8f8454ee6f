"""Decodificacao e codificacao de audio.

Decoders convertem bytes (containers/codecs) em Signal float32 multi-canal.
encode_wav serializa um Signal em WAV RIFF canonico PCM 16-bit.
"""

from __future__ import annotations

import asyncio
import base64
import io
import struct
import wave
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Self

import av
import numpy as np
import soundfile as sf
from av.error import FFmpegError

from voxclean._types import Signal
from voxclean.exceptions import DecodeError, EncodeError
from voxclean.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

logger = get_logger("preprocessing.audio_io")

# RIFF/WAVE canonico: RIFF header + fmt chunk (16 bytes) + data chunk header.
_WAV_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
WAV_HEADER_SIZE = _WAV_HEADER.size
_PCM_FORMAT = 1
_BITS_PER_SAMPLE = 16
_BYTES_PER_SAMPLE = _BITS_PER_SAMPLE // 8
_MAX_U32 = 0xFFFFFFFF
_MAX_U16 = 0xFFFF


# --- Decoders ---


class AudioDecoder(ABC):
    """Contrato de decodificacao: bytes de audio -> Signal.

    Cada invocacao do pipeline abre um decoder proprio com `async with`;
    close() e chamado em qualquer caminho de saida (sucesso ou erro),
    liberando recursos de plataforma que o decoder tenha alocado.
    """

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        """True apos close()."""
        return self._closed

    @abstractmethod
    async def decode(self, audio_bytes: bytes) -> Signal:
        """Decodifica bytes em Signal.

        Args:
            audio_bytes: Bytes do arquivo/container de audio.

        Returns:
            Signal float32 em [-1, 1], todos os canais preservados.

        Raises:
            DecodeError: Se o formato nao e suportado ou os bytes sao invalidos.
        """
        ...

    async def close(self) -> None:
        """Libera recursos do decoder. Idempotente."""
        self._closed = True

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


class BlockingAudioDecoder(AudioDecoder):
    """Base para decoders baseados em bibliotecas sincronas.

    O trabalho de decode roda numa thread (asyncio.to_thread, que copia os
    contextvars de log da invocacao) para nao bloquear o event loop.
    """

    async def decode(self, audio_bytes: bytes) -> Signal:
        if self._closed:
            raise DecodeError(f"{type(self).__name__} ja foi fechado")
        if not audio_bytes:
            raise DecodeError("Audio vazio (0 bytes)")

        return await asyncio.to_thread(self.decode_sync, audio_bytes)

    @abstractmethod
    def decode_sync(self, audio_bytes: bytes) -> Signal:
        """Decodificacao sincrona; ver AudioDecoder.decode."""
        ...


def _finalize(data: np.ndarray, sample_rate: int, decoder: str) -> Signal:
    """Valida amostras decodificadas e monta o Signal.

    Args:
        data: Array (canais, frames).
        sample_rate: Sample rate em Hz.
        decoder: Nome do decoder (para logs).

    Raises:
        DecodeError: Audio sem frames, sample rate invalido ou amostras nao finitas.
    """
    if data.ndim != 2 or data.shape[1] == 0:
        raise DecodeError("Audio sem frames")
    if sample_rate <= 0:
        raise DecodeError(f"Sample rate invalido: {sample_rate}")
    if not np.all(np.isfinite(data)):
        raise DecodeError("Audio contem amostras nao finitas (NaN/Inf)")

    samples = np.clip(data, -1.0, 1.0).astype(np.float32)
    signal = Signal(int(sample_rate), np.ascontiguousarray(samples))

    logger.debug(
        "audio_decoded",
        decoder=decoder,
        channels=signal.channels,
        frames=signal.frames,
        sample_rate=signal.sample_rate,
        duration_s=round(signal.duration, 3),
    )
    return signal


class SoundfileDecoder(BlockingAudioDecoder):
    """Decoder via libsndfile (WAV, FLAC, OGG/Vorbis, ...).

    Se libsndfile rejeitar os bytes, tenta o modulo wave da stdlib para WAV
    PCM simples.
    """

    def decode_sync(self, audio_bytes: bytes) -> Signal:
        try:
            with sf.SoundFile(io.BytesIO(audio_bytes)) as sound_file:
                data = sound_file.read(dtype="float32", always_2d=True)
                sample_rate = sound_file.samplerate
        except Exception as sf_err:
            # Fallback para wave stdlib (WAV PCM puro sem headers complexos)
            try:
                data, sample_rate = _decode_wav_stdlib(audio_bytes)
            except DecodeError:
                raise
            except Exception as wav_err:
                raise DecodeError(f"libsndfile: {sf_err}; wave: {wav_err}") from wav_err
            return _finalize(data, sample_rate, "wave")

        return _finalize(data.T, sample_rate, "soundfile")


def _decode_wav_stdlib(audio_bytes: bytes) -> tuple[np.ndarray, int]:
    """Decodifica WAV PCM usando wave stdlib.

    Returns:
        Tupla (array float32 (canais, frames), sample rate).

    Raises:
        DecodeError: Se o WAV e invalido ou usa largura de amostra nao suportada.
    """
    try:
        with wave.open(io.BytesIO(audio_bytes), "rb") as wf:
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            sample_rate = wf.getframerate()
            n_frames = wf.getnframes()

            if n_frames == 0:
                raise DecodeError("Arquivo WAV sem frames de audio")

            raw_data = wf.readframes(n_frames)
    except (wave.Error, EOFError) as err:
        raise DecodeError(f"Arquivo WAV invalido: {err}") from err

    if sampwidth == 2:
        data = np.frombuffer(raw_data, dtype="<i2").astype(np.float32) / 32768.0
    elif sampwidth == 1:
        # PCM 8-bit e unsigned
        data = (np.frombuffer(raw_data, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    else:
        raise DecodeError(f"Sample width {sampwidth} bytes nao suportado (esperado 1 ou 2)")

    usable = len(data) - len(data) % n_channels
    return data[:usable].reshape(-1, n_channels).T, sample_rate


class PyAVDecoder(BlockingAudioDecoder):
    """Decoder via PyAV (FFmpeg) para containers comprimidos.

    Cobre o que gravadores de browser produzem (WebM/Opus, MP4/AAC, OGG/Opus).
    Usa o primeiro stream de audio e converte para float planar mantendo
    layout de canais e sample rate originais.
    """

    def decode_sync(self, audio_bytes: bytes) -> Signal:
        chunks: list[np.ndarray] = []
        sample_rate = 0

        try:
            with av.open(io.BytesIO(audio_bytes), mode="r") as container:
                if not container.streams.audio:
                    raise DecodeError("Container sem stream de audio")
                stream = container.streams.audio[0]
                resampler = av.AudioResampler(format="fltp")

                for frame in container.decode(stream):
                    for converted in resampler.resample(frame):
                        sample_rate = converted.sample_rate
                        chunks.append(converted.to_ndarray())

                # Flush do resampler para nao perder amostras bufferizadas
                for converted in resampler.resample(None):
                    chunks.append(converted.to_ndarray())
        except FFmpegError as err:
            raise DecodeError(f"FFmpeg: {err}") from err

        if not chunks:
            raise DecodeError("Container sem frames de audio")

        data = np.concatenate(chunks, axis=1)
        return _finalize(data, sample_rate, "pyav")


class FallbackDecoder(AudioDecoder):
    """Tenta cada decoder em ordem e retorna o primeiro sucesso.

    Args:
        decoders: Decoders a tentar, em ordem de preferencia.
    """

    def __init__(self, decoders: list[AudioDecoder]) -> None:
        super().__init__()
        if not decoders:
            msg = "FallbackDecoder precisa de pelo menos um decoder"
            raise ValueError(msg)
        self._decoders = list(decoders)

    @property
    def decoders(self) -> list[AudioDecoder]:
        """Decoders na ordem de tentativa."""
        return list(self._decoders)

    async def decode(self, audio_bytes: bytes) -> Signal:
        if not audio_bytes:
            raise DecodeError("Audio vazio (0 bytes)")

        failures: list[str] = []
        for decoder in self._decoders:
            try:
                return await decoder.decode(audio_bytes)
            except DecodeError as err:
                failures.append(f"{type(decoder).__name__}: {err.detail}")

        raise DecodeError("; ".join(failures))

    async def close(self) -> None:
        for decoder in self._decoders:
            await decoder.close()
        await super().close()


def default_decoder() -> AudioDecoder:
    """Decoder padrao: libsndfile primeiro, PyAV para containers comprimidos."""
    return FallbackDecoder([SoundfileDecoder(), PyAVDecoder()])


# --- Encoder ---


def quantize_pcm16(samples: np.ndarray) -> np.ndarray:
    """Converte float para int16 com escala assimetrica.

    Amostras sao clampadas em [-1, 1]; negativas escalam por 32768 e
    positivas por 32767, com arredondamento.
    """
    clamped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return np.rint(scaled).astype("<i2")


def encode_wav(signal: Signal) -> bytes:
    """Codifica Signal em WAV RIFF canonico PCM 16-bit little-endian.

    Header de 44 bytes seguido das amostras intercaladas frame a frame
    (canal 0, canal 1, canal 0, ...).

    Args:
        signal: Sinal a codificar.

    Returns:
        Bytes do arquivo WAV completo.

    Raises:
        EncodeError: Amostras nao finitas ou tamanho fora dos limites do formato.
    """
    if not np.all(np.isfinite(signal.samples)):
        raise EncodeError("sinal contem amostras nao finitas (NaN/Inf)")

    channels = signal.channels
    sample_rate = signal.sample_rate
    block_align = channels * _BYTES_PER_SAMPLE
    byte_rate = sample_rate * block_align
    data_bytes = signal.frames * block_align

    if channels > _MAX_U16 or block_align > _MAX_U16:
        raise EncodeError(f"numero de canais excede o formato: {channels}")
    if byte_rate > _MAX_U32:
        raise EncodeError(f"byte rate excede 32 bits: {byte_rate}")
    if data_bytes > _MAX_U32 - (WAV_HEADER_SIZE - 8):
        raise EncodeError(f"dados ({data_bytes} bytes) excedem o limite de 4GB do WAV")

    # (canais, frames) -> (frames, canais) em ordem C = intercalado
    pcm = quantize_pcm16(signal.samples).T.tobytes()

    header = _WAV_HEADER.pack(
        b"RIFF",
        WAV_HEADER_SIZE - 8 + data_bytes,
        b"WAVE",
        b"fmt ",
        16,
        _PCM_FORMAT,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        _BITS_PER_SAMPLE,
        b"data",
        data_bytes,
    )
    return header + pcm


def to_data_url(audio_bytes: bytes, mime_type: str = "audio/wav") -> str:
    """Representacao data URL base64 (formato usado pelo historico de gravacoes)."""
    encoded = base64.b64encode(audio_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
