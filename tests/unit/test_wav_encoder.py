"""Testes do encoder WAV PCM 16-bit."""

from __future__ import annotations

import base64
import io
import struct
import wave

import numpy as np
import pytest

from voxclean._types import Signal
from voxclean.exceptions import EncodeError
from voxclean.preprocessing.audio_io import (
    WAV_HEADER_SIZE,
    encode_wav,
    quantize_pcm16,
    to_data_url,
)


def _pcm_values(wav_bytes: bytes) -> list[int]:
    data = wav_bytes[WAV_HEADER_SIZE:]
    return list(struct.unpack(f"<{len(data) // 2}h", data))


class TestHeader:
    def test_header_byte_exact_44khz_mono(self, tone_signal_44khz: Signal) -> None:
        # Act
        wav_bytes = encode_wav(tone_signal_44khz)

        # Assert
        assert len(wav_bytes) == 44 + 88200
        assert wav_bytes[0:4] == b"RIFF"
        assert struct.unpack("<I", wav_bytes[4:8])[0] == 36 + 88200
        assert wav_bytes[8:12] == b"WAVE"
        assert wav_bytes[12:16] == b"fmt "
        assert struct.unpack("<I", wav_bytes[16:20])[0] == 16
        assert struct.unpack("<H", wav_bytes[20:22])[0] == 1
        assert struct.unpack("<H", wav_bytes[22:24])[0] == 1
        assert struct.unpack("<I", wav_bytes[24:28])[0] == 44100
        assert struct.unpack("<I", wav_bytes[28:32])[0] == 88200
        assert struct.unpack("<H", wav_bytes[32:34])[0] == 2
        assert struct.unpack("<H", wav_bytes[34:36])[0] == 16
        assert wav_bytes[36:40] == b"data"
        assert struct.unpack("<I", wav_bytes[40:44])[0] == 88200

    def test_header_stereo_48khz(self) -> None:
        signal = Signal(48000, np.zeros((2, 480), dtype=np.float32))

        wav_bytes = encode_wav(signal)

        fields = struct.unpack("<4sI4s4sIHHIIHH4sI", wav_bytes[:44])
        assert fields[6] == 2
        assert fields[7] == 48000
        assert fields[8] == 48000 * 4
        assert fields[9] == 4
        assert fields[12] == 480 * 4

    def test_empty_signal_is_header_only(self) -> None:
        signal = Signal.from_mono(np.zeros(0), 16000)

        wav_bytes = encode_wav(signal)

        assert len(wav_bytes) == WAV_HEADER_SIZE
        assert struct.unpack("<I", wav_bytes[40:44])[0] == 0
        assert struct.unpack("<I", wav_bytes[4:8])[0] == 36

    def test_length_formula(self) -> None:
        signal = Signal(22050, np.zeros((3, 1001), dtype=np.float32))
        assert len(encode_wav(signal)) == 44 + 1001 * 3 * 2


class TestQuantization:
    def test_clamping_and_asymmetric_scale(self) -> None:
        signal = Signal.from_mono(np.array([1.5, -1.5, 1.0, -1.0, 0.0]), 8000)

        values = _pcm_values(encode_wav(signal))

        assert values == [32767, -32768, 32767, -32768, 0]

    def test_half_scale_rounding(self) -> None:
        signal = Signal.from_mono(np.array([0.5, -0.5]), 8000)
        assert _pcm_values(encode_wav(signal)) == [16384, -16384]

    def test_quantize_matches_scalar_rule(self) -> None:
        samples = np.array([0.1, -0.1, 0.2, -0.2, 0.999, -0.999], dtype=np.float64)
        expected = [
            round(s * 32768) if s < 0 else round(s * 32767) for s in samples.tolist()
        ]
        np.testing.assert_array_equal(quantize_pcm16(samples), expected)

    def test_quantize_dtype(self) -> None:
        assert quantize_pcm16(np.zeros(3)).dtype == np.dtype("<i2")


class TestInterleaving:
    def test_stereo_frames_interleaved(self) -> None:
        # Arrange
        left = np.array([0.1, 0.2], dtype=np.float32)
        right = np.array([-0.1, -0.2], dtype=np.float32)
        signal = Signal(16000, np.stack([left, right]))

        # Act
        values = _pcm_values(encode_wav(signal))

        # Assert -- L0, R0, L1, R1
        assert values == [3277, -3277, 6553, -6554]

    def test_from_interleaved_round_trip_order(self) -> None:
        interleaved = np.array([0.5, -0.5, 0.25, -0.25], dtype=np.float32)
        signal = Signal.from_interleaved(interleaved, 16000, channels=2)

        values = _pcm_values(encode_wav(signal))

        assert values == quantize_pcm16(interleaved).tolist()


class TestStandardReader:
    @pytest.mark.parametrize("sample_rate", [8000, 16000, 44100, 48000])
    @pytest.mark.parametrize("channels", [1, 2])
    def test_readable_by_wave_module(self, sample_rate: int, channels: int) -> None:
        # Arrange
        rng = np.random.default_rng(seed=sample_rate + channels)
        samples = rng.uniform(-1.0, 1.0, size=(channels, sample_rate // 10)).astype(np.float32)
        signal = Signal(sample_rate, samples)

        # Act
        wav_bytes = encode_wav(signal)

        # Assert
        with wave.open(io.BytesIO(wav_bytes), "rb") as wf:
            assert wf.getnchannels() == channels
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == sample_rate
            assert wf.getnframes() == signal.frames
            raw = wf.readframes(wf.getnframes())

        pcm = np.frombuffer(raw, dtype="<i2").reshape(-1, channels).T.astype(np.float64)
        decoded = np.where(pcm < 0, pcm / 32768.0, pcm / 32767.0)
        np.testing.assert_allclose(decoded, samples, atol=1.0 / 32768)


class TestErrors:
    @pytest.mark.parametrize("bad_value", [np.nan, np.inf])
    def test_non_finite_samples_rejected(self, bad_value: float) -> None:
        signal = Signal.from_mono(np.array([0.0, bad_value, 0.0]), 16000)
        with pytest.raises(EncodeError, match="nao finitas"):
            encode_wav(signal)

    def test_encode_error_has_detail(self) -> None:
        signal = Signal.from_mono(np.array([np.nan]), 16000)
        with pytest.raises(EncodeError) as exc_info:
            encode_wav(signal)
        assert "NaN" in exc_info.value.detail


class TestDataUrl:
    def test_wav_data_url(self) -> None:
        url = to_data_url(b"RIFF1234")
        assert url == "data:audio/wav;base64," + base64.b64encode(b"RIFF1234").decode()

    def test_custom_mime_type(self) -> None:
        url = to_data_url(b"\x00\x01", "audio/webm")
        assert url.startswith("data:audio/webm;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == b"\x00\x01"
