"""Fixtures compartilhadas para todos os testes."""

from __future__ import annotations

import io
import wave

import numpy as np
import pytest

from voxclean._types import Signal


def _pcm16_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Serializa array (canais, frames) float em WAV PCM 16-bit via wave stdlib."""
    channels = samples.shape[0]
    pcm = np.clip(samples, -1.0, 1.0)
    pcm = (pcm * 32767.0).astype("<i2").T.tobytes()

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return buffer.getvalue()


def _sine(
    frequency: float,
    sample_rate: int,
    duration: float,
    amplitude: float,
) -> np.ndarray:
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


@pytest.fixture
def tone_signal_44khz() -> Signal:
    """1 segundo de tom 440Hz, amplitude 0.5, 44.1kHz, mono."""
    return Signal.from_mono(_sine(440.0, 44100, 1.0, 0.5), 44100)


@pytest.fixture
def tone_wav_44khz() -> bytes:
    """WAV PCM 16-bit de 1 segundo, tom 440Hz, amplitude 0.5, 44.1kHz, mono."""
    return _pcm16_wav(_sine(440.0, 44100, 1.0, 0.5).reshape(1, -1), 44100)


@pytest.fixture
def stereo_wav_16khz() -> bytes:
    """WAV PCM 16-bit stereo de 0.5s (440Hz esquerda, 880Hz direita)."""
    left = _sine(440.0, 16000, 0.5, 0.5)
    right = _sine(880.0, 16000, 0.5, 0.3)
    return _pcm16_wav(np.stack([left, right]), 16000)


@pytest.fixture
def padded_speech_wav_16khz() -> bytes:
    """WAV 16kHz mono: 1s de silencio, 0.5s de tom, 1s de silencio."""
    silence = np.zeros(16000, dtype=np.float32)
    tone = _sine(300.0, 16000, 0.5, 0.5)
    return _pcm16_wav(np.concatenate([silence, tone, silence]).reshape(1, -1), 16000)
