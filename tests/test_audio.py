"""Tests for WAV encoding and data-URI helpers (app/services/audio.py)."""

import base64
import io
import wave

from app.services.audio import CHUNK_FRAMES, SAMPLE_RATE, pcm_to_wav, strip_data_uri, wav_data_uri


def _read_wav(wav_bytes: bytes):
    with wave.open(io.BytesIO(wav_bytes), "rb") as reader:
        return reader.getparams(), reader.readframes(reader.getnframes())


class TestPcmToWav:
    def test_wav_header_and_params(self):
        pcm = b"\x01\x00" * 1000
        wav_bytes = pcm_to_wav(pcm)

        assert wav_bytes[:4] == b"RIFF"
        params, frames = _read_wav(wav_bytes)
        assert params.nchannels == 1
        assert params.sampwidth == 2
        assert params.framerate == SAMPLE_RATE
        assert frames == pcm

    def test_pcm_spanning_several_chunks(self):
        frame_count = CHUNK_FRAMES * 3 + 7
        pcm = b"".join((i % 32768).to_bytes(2, "little") for i in range(frame_count))

        params, frames = _read_wav(pcm_to_wav(pcm))

        assert params.nframes == frame_count
        assert frames == pcm

    def test_empty_pcm(self):
        params, frames = _read_wav(pcm_to_wav(b""))
        assert params.nframes == 0
        assert frames == b""


class TestDataUri:
    def test_strip_data_uri_with_parameters(self):
        payload = base64.b64encode(b"abc").decode()
        assert strip_data_uri(f"data:audio/L16;codec=pcm;rate=24000;base64,{payload}") == b"abc"

    def test_wav_data_uri(self):
        uri = wav_data_uri(b"\x00\x00" * 4)
        assert uri.startswith("data:audio/wav;base64,")
        assert base64.b64decode(uri.split(",", 1)[1])[:4] == b"RIFF"
