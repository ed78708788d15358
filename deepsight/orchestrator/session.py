import asyncio
from typing import Callable, Optional

from deepsight.adapters.tts import lines as L
from deepsight.adapters.vision.base import VisionAdapter
from deepsight.orchestrator import errors
from deepsight.orchestrator.contracts import SystemState
from deepsight.orchestrator.state_machine import ScanLoop

ClientFactory = Callable[[str], VisionAdapter]

_RETRYABLE = (SystemState.CAMERA_FAILURE, SystemState.ERROR)


class SessionController:
    """
    Top-level lifecycle: init sequencing, user start/stop, pause/resume on
    backgrounding and deterministic disposal. Sole writer of session.state.

    Use as `async with SessionController(...) as ctl:` so the capture device
    and actuators are released on every exit path.
    """

    def __init__(self, session, camera, feedback, client_factory: Optional[ClientFactory],
                 interval_s: float = 2.5, low_power_interval_s: float = 4.0,
                 prefer_back_facing: bool = True):
        self.session = session
        self.camera = camera
        self.feedback = feedback
        self._client_factory = client_factory
        self.prefer_back_facing = prefer_back_facing
        self.client: Optional[VisionAdapter] = None
        self.loop = ScanLoop(session, camera, feedback, self._transition,
                             interval_s=interval_s, low_power_interval_s=low_power_interval_s)
        self._init_lock = asyncio.Lock()
        self._announced = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.dispose()

    def _transition(self, state: SystemState, advice: Optional[str] = None):
        prev = self.session.state
        self.session.set_state(state, advice)
        if prev is not state:
            self.session.log(f"session: {prev.value} -> {state.value}")

    # ── initialization ──────────────────────────────────────────────────────

    async def initialize(self, api_key: Optional[str]) -> SystemState:
        async with self._init_lock:
            self._transition(SystemState.INITIALIZING, L.ADVICE_BOOTING)
            self.session.api_key = api_key or None
            self.session.last_error = None
            try:
                await self._release_camera()
                await self._build_client()
                if await self._open_camera():
                    self.loop.reset()
                    self._transition(SystemState.READY, L.ADVICE_READY if self.client else L.ADVICE_INERT)
            except Exception as e:
                self.session.log(f"session: critical initialization failure {type(e).__name__}: {e}")
                self.session.last_error = getattr(e, "code", errors.ERR_UNKNOWN)
                self._transition(SystemState.ERROR, f"System Failure: {e}")
            # start() may have been pressed while we were still booting
            if not self.session.paused:
                await self._maybe_announce()
            return self.session.state

    async def _build_client(self):
        await self._close_client()
        if not self.session.api_key or self._client_factory is None:
            self.session.inert = True
            self.session.log("session: no API key, scanning disabled")
        else:
            self.client = self._client_factory(self.session.api_key)
            self.session.inert = False
        self.loop.attach(self.client)

    async def _open_camera(self) -> bool:
        self.session.set_state(SystemState.INITIALIZING, L.ADVICE_CONNECTING_CAMERA)
        try:
            handle = await self.camera.open(prefer_back_facing=self.prefer_back_facing)
        except (errors.NoDeviceFound, errors.HardwareUnavailable) as e:
            self.session.last_error = e.code
            self._transition(SystemState.CAMERA_FAILURE, L.ADVICE_CAMERA_UNAVAILABLE)
            return False
        except errors.CameraError as e:
            self.session.last_error = e.code
            self._transition(SystemState.CAMERA_FAILURE, L.ADVICE_CAMERA_OFFLINE)
            return False
        if self.session.paused:
            # backgrounded while opening; resume() will reinitialize
            await self.camera.release(handle)
            return False
        self.session.capture_device = handle
        return True

    # ── user actions ────────────────────────────────────────────────────────

    async def start(self):
        """
        User gesture. Audio output and speech may only be activated from a
        user-initiated action on some platforms, so scanning starts here and
        never from initialize().
        """
        self.session.user_enabled = True
        self.session.notify()
        await self._maybe_announce()
        if not self.session.paused:
            self.loop.start()

    async def _maybe_announce(self):
        # once per session, and only when scanning can actually happen
        if self._announced or not self.session.user_enabled:
            return
        if self.session.state is not SystemState.READY or self.session.inert:
            return
        self._announced = True
        await self.feedback.announce(L.ACTIVATED)

    async def stop(self):
        self.session.user_enabled = False
        self.loop.stop()
        self.feedback.cancel_beep()
        self.session.notify()

    async def retry(self) -> bool:
        if self.session.state not in _RETRYABLE:
            self.session.log(f"session: retry ignored in state {self.session.state.value}")
            return False
        await self.initialize(self.session.api_key)
        if self.session.user_enabled and not self.session.paused:
            self.loop.start()
        return True

    def set_low_power(self, enabled: bool):
        self.session.low_power = enabled
        self.session.log(f"session: low power {'on' if enabled else 'off'} (interval={self.loop.interval_s}s)")
        self.session.notify()

    # ── app lifecycle ───────────────────────────────────────────────────────

    async def pause(self):
        """App backgrounded. In-flight inference is left to finish and discarded."""
        if self.session.paused:
            return
        self.session.paused = True
        self.loop.stop()
        self.feedback.cancel_beep()
        await self._release_camera()
        self.session.advice = L.ADVICE_PAUSED
        self.session.log("session: paused")
        self.session.notify()

    async def resume(self):
        if not self.session.paused:
            return
        self.session.paused = False
        self.session.log("session: resumed")
        await self.initialize(self.session.api_key)
        if self.session.user_enabled:
            self.loop.start()

    # ── teardown ────────────────────────────────────────────────────────────

    async def dispose(self):
        steps = [
            ("scan loop", self.loop.aclose),
            ("feedback", self.feedback.shutdown),
            ("camera", self._release_camera),
            ("vision client", self._close_client),
            ("haptics", self.feedback.vibration.aclose),
        ]
        for name, step in steps:
            try:
                await step()
            except Exception as e:
                self.session.log(f"session: dispose {name} error {type(e).__name__}: {e}")
        self.session.user_enabled = False
        self.session.log("session: disposed")

    async def _release_camera(self):
        handle = self.session.capture_device
        self.session.capture_device = None
        if handle is not None:
            await self.camera.release(handle)

    async def _close_client(self):
        client = self.client
        self.client = None
        self.loop.attach(None)
        if client is not None:
            await client.aclose()
