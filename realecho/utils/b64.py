"""Decode base64 recordings posted by the browser into temporary audio files."""

import base64
import binascii
import os
import tempfile
from typing import Optional, Tuple

from fastapi import HTTPException

# (offset, signature, extension); checked in order
AUDIO_SIGNATURES = (
    (0, b"RIFF", ".wav"),
    (0, b"ID3", ".mp3"),
    (0, b"\xff\xfb", ".mp3"),
    (0, b"\xff\xf3", ".mp3"),
    (0, b"\xff\xf2", ".mp3"),
    (0, b"fLaC", ".flac"),
    (0, b"OggS", ".ogg"),
    (0, b"\x1aE\xdf\xa3", ".webm"),  # EBML, what MediaRecorder produces
    (4, b"ftyp", ".m4a"),  # ISO-BMFF
)

MIME_EXTENSIONS = {
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/flac": ".flac",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
    "video/webm": ".webm",
    "audio/mp4": ".m4a",
    "audio/x-m4a": ".m4a",
}


def guess_audio_extension(header: bytes, default: str = ".wav") -> str:
    for offset, signature, ext in AUDIO_SIGNATURES:
        if header[offset:offset + len(signature)] == signature:
            return ext
    return default


def split_data_url(value: str) -> Tuple[Optional[str], str]:
    """
    Split ``data:audio/webm;codecs=opus;base64,<payload>`` into (mime, payload).

    Plain base64 comes back as (None, value).
    """
    if not value.startswith("data:"):
        return None, value
    header, sep, payload = value.partition(",")
    if not sep:
        raise HTTPException(status_code=400, detail="Invalid data URL: missing ','")
    params = header[len("data:"):].split(";")
    if "base64" not in params[1:]:
        raise HTTPException(status_code=400, detail="Only base64 data URLs are supported")
    return params[0].lower() or None, payload


def b64_to_temp_audio_file(b64_str: str) -> str:
    mime, payload = split_data_url(b64_str.strip())
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid base64: {e}")
    if not raw:
        raise HTTPException(status_code=400, detail="Audio payload is empty")

    # the bytes win over a declared type; ffmpeg probes the content anyway
    ext = guess_audio_extension(raw[:16], default=MIME_EXTENSIONS.get(mime, ".wav"))
    fd, path = tempfile.mkstemp(prefix="assess_", suffix=ext)
    with os.fdopen(fd, "wb") as f:
        f.write(raw)
    return path
