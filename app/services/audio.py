"""PCM to WAV re-encoding for synthesized speech."""

import base64
import io
import wave

SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes, 16-bit samples

# Frames handed to the writer per call
CHUNK_FRAMES = 4096


def strip_data_uri(data_uri: str) -> bytes:
    """Decode the base64 payload that follows the first comma of a data URI."""
    return base64.b64decode(data_uri[data_uri.index(",") + 1:])


def pcm_to_wav(
    pcm: bytes,
    channels: int = CHANNELS,
    rate: int = SAMPLE_RATE,
    sample_width: int = SAMPLE_WIDTH,
) -> bytes:
    """Wrap raw PCM samples in a WAV container, streaming them in chunks."""
    buffer = io.BytesIO()
    chunk_size = CHUNK_FRAMES * channels * sample_width
    with wave.open(buffer, "wb") as writer:
        writer.setnchannels(channels)
        writer.setsampwidth(sample_width)
        writer.setframerate(rate)
        for offset in range(0, len(pcm), chunk_size):
            writer.writeframes(pcm[offset:offset + chunk_size])
    return buffer.getvalue()


def wav_data_uri(pcm: bytes) -> str:
    wav_bytes = pcm_to_wav(pcm)
    return f"data:audio/wav;base64,{base64.b64encode(wav_bytes).decode('ascii')}"
