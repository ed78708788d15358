"""
Local speech + beep player — cross-platform.

Speech priority:
  1. Pre-recorded audio for fixed lines: assets/<file>
  2. Dynamic text: macOS `say`, or espeak / espeak-ng on Linux
  3. Silent log if no TTS tool is available

Beeps are fire-and-forget (Popen) so a beep sequence keeps its period.
"""

import asyncio
import os
import shutil
import subprocess
import sys
from deepsight.adapters.tts import lines as L
from deepsight.adapters.tts.base import BeepPlayer, SpeechAdapter, SpeechSettings

# words per minute at rate=0.5
_BASE_WPM = 175


class LocalPlayerTTS(SpeechAdapter, BeepPlayer):
    def __init__(self, status_store, assets_dir: str | None = None):
        self.status = status_store
        self.assets_dir = assets_dir or os.path.join(os.path.dirname(__file__), "assets")
        self._proc: asyncio.subprocess.Process | None = None

    async def say(self, line_key: str, settings: SpeechSettings):
        fname = L.LINE_AUDIO.get(line_key)
        path = os.path.join(self.assets_dir, fname) if fname else ""
        if path and os.path.isfile(path):
            self.status.log(f"tts: playing {fname}")
            await self._run(self._player_cmd(path))
        else:
            await self.speak(L.LINE_TEXT.get(line_key, line_key), settings)

    async def speak(self, text: str, settings: SpeechSettings):
        if not text.strip():
            return
        cmd = self._speech_cmd(text, settings)
        if cmd is None:
            self.status.log(f"tts: no speech tool available, would say: {text}")
            return
        self.status.log(f"tts: {text}")
        await self._run(cmd)

    async def stop(self):
        proc = self._proc
        if proc is not None and proc.returncode is None:
            proc.terminate()
            await proc.wait()
        self._proc = None

    def play_beep(self):
        path = os.path.join(self.assets_dir, L.BEEP_AUDIO)
        if not os.path.isfile(path):
            self.status.log("tts: beep asset missing, skipping")
            return
        cmd = self._player_cmd(path)
        if cmd is None:
            self.status.log("tts: no audio player found, skipping beep")
            return
        subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

    async def _run(self, cmd: list[str] | None):
        # awaits completion — feedback finishes before the next capture
        if cmd is None:
            self.status.log("tts: no audio player found, skipping playback")
            return
        self._proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.DEVNULL,
        )
        await self._proc.wait()
        self._proc = None

    def _speech_cmd(self, text: str, s: SpeechSettings) -> list[str] | None:
        wpm = str(int(_BASE_WPM * s.rate * 2))
        if sys.platform == "darwin":
            return ["say", "-r", wpm, text]
        for tool in ("espeak-ng", "espeak"):
            if shutil.which(tool):
                lang = s.language.split("-")[0].lower()
                amplitude = str(int(200 * s.volume))
                return [tool, "-v", lang, "-s", wpm, "-a", amplitude, text]
        return None

    def _player_cmd(self, path: str) -> list[str] | None:
        if sys.platform == "darwin":
            return ["afplay", path]
        if shutil.which("ffplay"):
            return ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet", path]
        if shutil.which("mpv"):
            return ["mpv", "--no-video", path]
        if shutil.which("aplay"):
            return ["aplay", "-q", path]
        if shutil.which("paplay"):
            return ["paplay", path]
        return None
