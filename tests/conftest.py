"""
Pytest configuration and shared fakes.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional

import pytest

from deepsight.adapters.camera.base import CameraAdapter
from deepsight.adapters.tts.base import BeepPlayer, SpeechAdapter
from deepsight.adapters.vision.base import VisionAdapter
from deepsight.orchestrator.contracts import DeviceDescriptor, DeviceHandle
from deepsight.orchestrator.feedback import FeedbackActuator
from deepsight.orchestrator.session import SessionController
from deepsight.services.status_store import Session

FRAME = b"\xff\xd8fake-jpeg\xff\xd9"

BACK = DeviceDescriptor(device_id="1", name="Rear", lens="back")
FRONT = DeviceDescriptor(device_id="0", name="Selfie", lens="front")


def run(coro):
    return asyncio.run(coro)


class ManualClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeCamera(CameraAdapter):
    def __init__(self, status_store, devices=(FRONT, BACK), frame: bytes = FRAME,
                 capture_delay: float = 0.0, enumerate_delay: float = 0.0,
                 enumerate_timeout_s: float = 6.0, events: Optional[list] = None):
        super().__init__(status_store, enumerate_timeout_s=enumerate_timeout_s)
        self.devices = list(devices)
        self.frame = frame
        self.capture_delay = capture_delay
        self.enumerate_delay = enumerate_delay
        self.capture_errors: list[BaseException] = []
        self.enumerate_error: Optional[BaseException] = None
        self.opens = 0
        self.captures = 0
        self.releases = 0
        self.events = events if events is not None else []

    async def _enumerate(self):
        if self.enumerate_delay:
            await asyncio.sleep(self.enumerate_delay)
        if self.enumerate_error is not None:
            raise self.enumerate_error
        return self.devices

    async def _open_device(self, descriptor):
        self.opens += 1
        return DeviceHandle(descriptor=descriptor, native=object())

    async def _capture(self, handle):
        self.captures += 1
        self.events.append("capture")
        if self.capture_delay:
            await asyncio.sleep(self.capture_delay)
        if self.capture_errors:
            raise self.capture_errors.pop(0)
        return self.frame

    async def _close_device(self, handle):
        self.releases += 1


@dataclass
class Slow:
    seconds: float
    reply: str = "SAFE : Path Clear."


class FakeVision(VisionAdapter):
    """Replies are consumed in order; the last one repeats."""
    name = "fake_vision"

    def __init__(self, status_store, replies=("SAFE : Path Clear.",), timeout_s: float = 5.0):
        super().__init__(status_store, timeout_s=timeout_s)
        self.replies = list(replies)
        self.calls = 0
        self.prompts: list[str] = []
        self.closed = False

    async def _generate(self, image_bytes, prompt):
        self.calls += 1
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Slow):
            await asyncio.sleep(reply.seconds)
            return reply.reply
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def aclose(self):
        self.closed = True


class RecordingSpeech(SpeechAdapter, BeepPlayer):
    def __init__(self, events: Optional[list] = None):
        self.spoken: list[str] = []
        self.lines: list[str] = []
        self.beeps = 0
        self.stopped = False
        self.error: Optional[BaseException] = None
        self.events = events if events is not None else []

    async def speak(self, text, settings):
        if self.error is not None:
            raise self.error
        self.events.append("speak")
        self.spoken.append(text)

    async def say(self, line_key, settings):
        self.lines.append(line_key)

    async def stop(self):
        self.stopped = True

    def play_beep(self):
        self.beeps += 1


class RecordingVibration:
    def __init__(self, available: bool = True):
        self.available = available
        self.patterns: list[list[int]] = []
        self.error: Optional[BaseException] = None
        self.closed = False

    async def has_vibrator(self):
        return self.available

    async def vibrate(self, pattern):
        if self.error is not None:
            raise self.error
        self.patterns.append(list(pattern))

    async def aclose(self):
        self.closed = True


@dataclass
class Rig:
    session: Session
    camera: FakeCamera
    speech: RecordingSpeech
    vibration: RecordingVibration
    feedback: FeedbackActuator
    controller: SessionController
    visions: list

    @property
    def vision(self) -> Optional[FakeVision]:
        return self.visions[-1] if self.visions else None


def make_rig(replies=("SAFE : Path Clear.",), devices=(FRONT, BACK), interval_s: float = 0.02,
             vision_timeout_s: float = 5.0, factory_error: Optional[BaseException] = None,
             clock=None, **camera_kwargs) -> Rig:
    session = Session()
    events: list = []
    camera = FakeCamera(session, devices=devices, events=events, **camera_kwargs)
    speech = RecordingSpeech(events=events)
    vibration = RecordingVibration()
    feedback = FeedbackActuator(speech, vibration, speech, session, **({"clock": clock} if clock else {}))
    visions: list = []

    def factory(api_key):
        if factory_error is not None:
            raise factory_error
        v = FakeVision(session, replies=replies, timeout_s=vision_timeout_s)
        visions.append(v)
        return v

    controller = SessionController(session, camera, feedback, factory,
                                   interval_s=interval_s, low_power_interval_s=interval_s * 2)
    return Rig(session, camera, speech, vibration, feedback, controller, visions)


@pytest.fixture
def session() -> Session:
    return Session()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
