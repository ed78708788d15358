"""
Feedback actuator: speech, vibration and beeps for one verdict at a time.

Rules:
  - speech repeats only for new text, at most every 2s (danger bypasses both)
  - danger vibrates and starts a beep sequence; closer hazard = faster beeps
  - a new verdict cancels any running beep sequence (one beep task max)
  - actuator errors are logged and swallowed; present() never raises
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

from deepsight.adapters.haptics.base import DANGER_PATTERN
from deepsight.adapters.tts.base import SpeechSettings
from deepsight.orchestrator.contracts import HazardVerdict

DEFAULT_BEEP_PERIOD_MS = 1000
MIN_SPEECH_INTERVAL_S = 2.0
BEEP_WINDOW_MS = 2000


def beep_period_ms(verdict: HazardVerdict) -> int:
    d = verdict.distance_steps
    if d is None:
        return DEFAULT_BEEP_PERIOD_MS
    if d <= 1:
        return 250
    if d <= 2:
        return 500
    return DEFAULT_BEEP_PERIOD_MS


@dataclass
class FeedbackState:
    last_spoken_text: str = ""
    last_spoken_at: Optional[float] = None
    active_beep: Optional[asyncio.Task] = None


class FeedbackActuator:
    def __init__(self, speech, vibration, beeper, status_store,
                 settings: SpeechSettings = SpeechSettings(),
                 clock: Callable[[], float] = time.monotonic,
                 min_speech_interval_s: float = MIN_SPEECH_INTERVAL_S,
                 beep_window_ms: int = BEEP_WINDOW_MS):
        self.speech = speech
        self.vibration = vibration
        self.beeper = beeper
        self.status = status_store
        self.settings = settings
        self._clock = clock
        self.min_speech_interval_s = min_speech_interval_s
        self.beep_window_ms = beep_window_ms
        self._state = FeedbackState()

    @property
    def state(self) -> FeedbackState:
        return self._state

    @property
    def beeping(self) -> bool:
        task = self._state.active_beep
        return task is not None and not task.done()

    async def present(self, verdict: HazardVerdict):
        self.cancel_beep()
        if verdict.advisory:
            return

        if verdict.is_danger:
            self._start_beep(beep_period_ms(verdict))
            await self._vibrate()

        try:
            await self._maybe_speak(verdict)
        except Exception as e:
            self.status.log(f"feedback: speech error {type(e).__name__}: {e}")

    async def announce(self, line_key: str):
        """Speak a fixed line outside the debounce rules (activation etc)."""
        try:
            await self.speech.say(line_key, self.settings)
        except Exception as e:
            self.status.log(f"feedback: announce error {type(e).__name__}: {e}")

    def cancel_beep(self):
        task = self._state.active_beep
        if task is not None and not task.done():
            task.cancel()
            self.status.log("feedback: beep cancelled")
        self._state.active_beep = None

    async def shutdown(self):
        task = self._state.active_beep
        self.cancel_beep()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        try:
            await self.speech.stop()
        except Exception as e:
            self.status.log(f"feedback: speech stop error {type(e).__name__}: {e}")

    async def _maybe_speak(self, verdict: HazardVerdict):
        text = verdict.display_text
        spoken = verdict.spoken_text.strip()
        if not spoken:
            return

        now = self._clock()
        if not verdict.is_danger:
            if text == self._state.last_spoken_text:
                self.status.log("feedback: unchanged, not repeating")
                return
            last = self._state.last_spoken_at
            if last is not None and now - last < self.min_speech_interval_s:
                self.status.log(f"feedback: debounced ({now - last:.1f}s since last)")
                return

        self._state.last_spoken_text = text
        self._state.last_spoken_at = now
        await self.speech.speak(spoken, self.settings)

    async def _vibrate(self):
        try:
            if await self.vibration.has_vibrator():
                await self.vibration.vibrate(DANGER_PATTERN)
        except Exception as e:
            self.status.log(f"feedback: vibration error {type(e).__name__}: {e}")

    def _start_beep(self, period_ms: int):
        self.cancel_beep()
        self._state.active_beep = asyncio.get_running_loop().create_task(self._beep_sequence(period_ms))
        self.status.log(f"feedback: beeping every {period_ms}ms")

    async def _beep_sequence(self, period_ms: int):
        elapsed = 0
        while elapsed < self.beep_window_ms:
            try:
                self.beeper.play_beep()
            except Exception as e:
                self.status.log(f"feedback: beep error {type(e).__name__}: {e}")
                return
            await asyncio.sleep(period_ms / 1000)
            elapsed += period_ms
