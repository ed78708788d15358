import asyncio
import time
from typing import Callable, Optional

from deepsight.adapters.tts import lines as L
from deepsight.adapters.vision.prompt import SCAN_PROMPT
from deepsight.orchestrator import errors
from deepsight.orchestrator.classifier import HazardClassifier
from deepsight.orchestrator.contracts import HazardVerdict, ScanCycleResult, Severity, SystemState

# consecutive capture faults before the camera is declared offline
CAPTURE_FAILURE_LIMIT = 3
MAX_BACKOFF_S = 30.0

Transition = Callable[..., None]


def retrying_verdict() -> HazardVerdict:
    return HazardVerdict(severity=Severity.UNKNOWN, raw_text=L.ADVICE_RETRYING, advisory=True)


class ScanLoop:
    """
    Periodic capture -> infer -> classify -> actuate.

    The next cycle is scheduled only after the previous one fully completes,
    so cycles never overlap. A tick that arrives while a cycle is in flight
    is dropped, not queued. State writes go through `transition`, which the
    SessionController owns.
    """

    def __init__(self, session, camera, feedback, transition: Transition,
                 classifier: Optional[HazardClassifier] = None, prompt: str = SCAN_PROMPT,
                 interval_s: float = 2.5, low_power_interval_s: float = 4.0,
                 clock: Callable[[], float] = time.time):
        self.session = session
        self.camera = camera
        self.feedback = feedback
        self._transition = transition
        self.classifier = classifier or HazardClassifier()
        self.prompt = prompt
        self.base_interval_s = interval_s
        self.low_power_interval_s = low_power_interval_s
        self._clock = clock

        self.client = None
        self.cycles = 0
        self.next_delay_s = interval_s
        self._busy = False
        self._epoch = 0
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None
        self._rate_limit_streak = 0
        self._capture_failures = 0

    # ── scheduling ──────────────────────────────────────────────────────────

    @property
    def interval_s(self) -> float:
        return self.low_power_interval_s if self.session.low_power else self.base_interval_s

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self, client):
        self.client = client

    def reset(self):
        """Forget fault and backoff history; called whenever the device is reopened."""
        self._capture_failures = 0
        self._rate_limit_streak = 0
        self.next_delay_s = self.interval_s

    def start(self):
        if self.running:
            return
        self._epoch += 1
        self._wake = asyncio.Event()
        self.next_delay_s = self.interval_s
        self._task = asyncio.get_running_loop().create_task(self._run(self._epoch, self._wake))
        self.session.log(f"scan: loop started (interval={self.interval_s}s)")

    def stop(self):
        """Stop scheduling. A cycle already in flight completes and is discarded."""
        self._epoch += 1
        if self._wake is not None:
            self._wake.set()
        self._task = None
        self.session.log("scan: loop stopped")

    async def aclose(self):
        task = self._task
        self.stop()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self, epoch: int, wake: asyncio.Event):
        while epoch == self._epoch:
            await self.tick()
            if epoch != self._epoch:
                break
            try:
                await asyncio.wait_for(wake.wait(), timeout=self.next_delay_s)
            except asyncio.TimeoutError:
                pass

    # ── one cycle ───────────────────────────────────────────────────────────

    def _can_fire(self) -> bool:
        s = self.session
        return (
            s.state is SystemState.READY
            and not s.paused
            and self.client is not None
            and s.capture_device is not None
        )

    async def tick(self) -> Optional[ScanCycleResult]:
        if self._busy:
            self.session.log(f"scan: tick skipped ({errors.ERR_BUSY})")
            return None
        if not self._can_fire():
            return None

        self._busy = True
        epoch = self._epoch
        t0 = time.monotonic()
        self.cycles += 1
        self._transition(SystemState.PROCESSING)
        try:
            return await self._cycle(epoch, t0)
        except Exception as e:
            self.session.log(f"scan: error {type(e).__name__}: {e}")
            if self._stale(epoch):
                return self._discard()
            return await self._fallback(errors.ERR_UNKNOWN, 0)
        finally:
            self._busy = False

    def _stale(self, epoch: int) -> bool:
        return epoch != self._epoch or self.session.paused

    def _discard(self) -> None:
        self.session.log("scan: result discarded (loop stopped or paused)")
        if self.session.state is SystemState.PROCESSING:
            self._transition(SystemState.READY)
        return None

    async def _cycle(self, epoch: int, t0: float) -> Optional[ScanCycleResult]:
        handle = self.session.capture_device
        try:
            frame = await self.camera.capture_still(handle)
        except errors.CaptureError as e:
            if self._stale(epoch):
                return self._discard()
            self._capture_failures += 1
            self.session.log(f"scan: capture fault {self._capture_failures}/{CAPTURE_FAILURE_LIMIT}: {e}")
            if self._capture_failures >= CAPTURE_FAILURE_LIMIT:
                self.session.last_error = e.code
                self._transition(SystemState.CAMERA_FAILURE, L.ADVICE_CAMERA_OFFLINE)
                return None
            self.next_delay_s = self.interval_s
            return await self._fallback(e.code, 0)
        self._capture_failures = 0

        if self._stale(epoch):
            return self._discard()

        try:
            raw = await self.client.classify(frame, self.prompt)
        except errors.RateLimited as e:
            self._rate_limit_streak += 1
            self.next_delay_s = self._backoff_delay(e.retry_after)
            self.session.log(f"scan: rate limited, next cycle in {self.next_delay_s:.1f}s")
            if self._stale(epoch):
                return self._discard()
            return await self._fallback(e.code, len(frame))
        except errors.InferenceError as e:
            self.next_delay_s = self.interval_s
            if self._stale(epoch):
                return self._discard()
            return await self._fallback(e.code, len(frame))

        if self._stale(epoch):
            return self._discard()

        self._rate_limit_streak = 0
        self.next_delay_s = self.interval_s

        verdict = self.classifier.parse(raw)
        if verdict.severity is Severity.UNKNOWN:
            self.session.log(f"scan: {errors.ERR_PARSE_ANOMALY} raw='{raw[:80]}'")
        result = ScanCycleResult(verdict=verdict, timestamp=self._clock(), captured_frame_size=len(frame))

        self.session.last_verdict = verdict
        self.session.last_error = None
        self._transition(SystemState.READY, verdict.display_text or L.ADVICE_NO_ANALYSIS)
        await self.feedback.present(verdict)

        dt = int((time.monotonic() - t0) * 1000)
        self.session.log(f"scan: cycle done severity={verdict.severity.value} dt={dt}ms")
        return result

    async def _fallback(self, code: str, frame_size: int) -> ScanCycleResult:
        verdict = retrying_verdict()
        self.session.last_error = code
        self.session.log(f"scan: {code}, substituting advisory")
        self._transition(SystemState.READY, L.ADVICE_RETRYING)
        await self.feedback.present(verdict)
        return ScanCycleResult(verdict=verdict, timestamp=self._clock(),
                               captured_frame_size=frame_size, fallback=True)

    def _backoff_delay(self, retry_after: Optional[float]) -> float:
        base = self.interval_s
        delay = retry_after if retry_after is not None else base * 2 ** self._rate_limit_streak
        return min(max(base, delay), MAX_BACKOFF_S)
