"""Korean speech output: Edge TTS with a local synthesizer fallback."""
import asyncio
import hashlib
import logging
import os
import shutil
import uuid
from typing import Optional, Protocol

import edge_tts

from hana_vocab.config import Config

logger = logging.getLogger(__name__)

# Command-line players tried in order for synthesized mp3 files.
PLAYERS = (
    ("ffplay", ["-nodisp", "-autoexit", "-loglevel", "quiet"]),
    ("mpg123", ["-q"]),
    ("afplay", []),
)
# Local synthesizers used when Edge TTS is unavailable.
LOCAL_VOICES = (
    ("espeak-ng", ["-v", "ko", "-s", "150"]),
    ("espeak", ["-v", "ko", "-s", "150"]),
    ("say", ["-v", "Yuna", "-r", "160"]),
)


class Speaker(Protocol):
    async def speak(self, text: str) -> None: ...


class SilentSpeaker:
    async def speak(self, text: str) -> None:
        return None


async def _run(cmd: list[str]) -> int:
    proc = await asyncio.create_subprocess_exec(
        *cmd, stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.DEVNULL
    )
    return await proc.wait()


def _find_command(candidates) -> Optional[list[str]]:
    for name, args in candidates:
        path = shutil.which(name)
        if path:
            return [path, *args]
    return None


class EdgeSpeaker:
    """Speak text with Edge TTS; fall back to a locally installed synthesizer.

    speak() is best-effort and never raises.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.voice = self.config.tts_voice
        self.audio_dir = self.config.audio_dir

    def cache_path(self, text: str) -> str:
        digest = hashlib.sha1(f"{self.voice}:{text}".encode("utf-8")).hexdigest()[:16]
        return os.path.join(self.audio_dir, f"{digest}.mp3")

    async def synthesize(self, text: str) -> str:
        """Write speech for text to the audio cache and return the mp3 path."""
        output_path = self.cache_path(text)
        if os.path.exists(output_path):
            return output_path
        os.makedirs(self.audio_dir, exist_ok=True)
        # Atomic write: save to temp file first
        temp_path = f"{output_path}.{uuid.uuid4().hex[:8]}.tmp"
        try:
            communicate = edge_tts.Communicate(text, self.voice)
            await communicate.save(temp_path)
            if not os.path.exists(temp_path) or os.path.getsize(temp_path) == 0:
                raise RuntimeError("No audio data returned")
            os.replace(temp_path, output_path)
            temp_path = None
        finally:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)
        return output_path

    async def _play(self, path: str) -> None:
        player = _find_command(PLAYERS)
        if player is None:
            raise RuntimeError("No audio player found")
        await _run([*player, path])

    async def _speak_locally(self, text: str) -> None:
        voice = _find_command(LOCAL_VOICES)
        if voice is None:
            logger.info("No local speech synthesizer available")
            return
        await _run([*voice, text])

    async def speak(self, text: str) -> None:
        if not text:
            return
        try:
            path = await self.synthesize(text)
            await self._play(path)
        except Exception as e:
            logger.warning("TTS failed, falling back to local voice: %s", str(e)[:100])
            try:
                await self._speak_locally(text)
            except OSError as e:
                logger.warning("Local speech failed: %s", e)
