import os
import wave
import shutil
import logging
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)


class AudioServiceError(RuntimeError):
    pass


class AudioService:
    """Bring uploaded recordings into the PCM format the recognizer streams (16 kHz, 16-bit, mono)."""

    def __init__(self, target_sr: int = 16000, mono: bool = True):
        self.target_sr = target_sr
        self.mono = mono

    def convert_to_wav(self, input_path: str, output_path: Optional[str] = None, overwrite: bool = True) -> str:
        if not os.path.isfile(input_path):
            raise AudioServiceError(f"Input file not found: {input_path}")
        if shutil.which("ffmpeg") is None:
            raise AudioServiceError("ffmpeg not found on PATH.")

        if output_path is None:
            base, _ = os.path.splitext(input_path)
            output_path = base + ".pcm.wav"

        if os.path.exists(output_path) and not overwrite:
            raise AudioServiceError(f"Output file already exists: {output_path}")

        cmd = ["ffmpeg", "-y" if overwrite else "-n", "-i", input_path, "-vn",
               "-acodec", "pcm_s16le", "-ar", str(self.target_sr)]
        if self.mono:
            cmd += ["-ac", "1"]
        cmd.append(output_path)

        logger.info("Converting to WAV: %s -> %s", input_path, output_path)
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
            self.validate_wav(output_path)
        except subprocess.CalledProcessError as e:
            self._discard(output_path)
            raise AudioServiceError(e.stderr.decode(errors="ignore")) from e
        except AudioServiceError:
            self._discard(output_path)
            raise
        return output_path

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove partial output %s", path)

    def validate_wav(self, path: str) -> None:
        try:
            with wave.open(path, "rb") as wf:
                if wf.getframerate() != self.target_sr:
                    raise AudioServiceError("Unexpected sample rate.")
                if self.mono and wf.getnchannels() != 1:
                    raise AudioServiceError("Audio is not mono.")
                if wf.getsampwidth() != 2:
                    raise AudioServiceError("Audio is not 16-bit.")
        except AudioServiceError:
            raise
        except (wave.Error, EOFError, OSError) as e:
            raise AudioServiceError(f"Failed to validate WAV: {e}") from e
