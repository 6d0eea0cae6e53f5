"""
Wraps the raw PCM returned by Gemini TTS into a playable WAV data URL.

Gemini answers with signed 16-bit little-endian PCM and a MIME type such as
``audio/L16;codec=pcm;rate=24000``.
"""

import base64
import io
import re
import wave
from typing import Union

DEFAULT_SAMPLE_RATE = 16000
SAMPLE_WIDTH = 2  # 16-bit
WAV_HEADER_SIZE = 44

_RATE_PATTERN = re.compile(r"rate=(\d+)")


def parse_sample_rate(mime_type: str, default: int = DEFAULT_SAMPLE_RATE) -> int:
    match = _RATE_PATTERN.search(mime_type or "")
    return int(match.group(1)) if match else default


def decode_pcm(audio_data: Union[str, bytes]) -> bytes:
    if isinstance(audio_data, str):
        # If it's base64 encoded, decode it
        return base64.b64decode(audio_data)
    return bytes(audio_data)


def pcm_to_wav(pcm_data: bytes, sample_rate: int, channels: int = 1) -> bytes:
    """Canonical 44-byte RIFF/WAVE header followed by the PCM frames"""
    frame_size = SAMPLE_WIDTH * channels
    # A dangling partial sample cannot be represented; drop it
    usable = len(pcm_data) - (len(pcm_data) % frame_size)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm_data[:usable])
    return buf.getvalue()


def to_data_url(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


def pcm_to_wav_data_url(audio_data: Union[str, bytes], mime_type: str) -> str:
    pcm = decode_pcm(audio_data)
    wav_bytes = pcm_to_wav(pcm, parse_sample_rate(mime_type))
    return to_data_url(wav_bytes, "audio/wav")
