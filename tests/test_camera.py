import asyncio
import time

import pytest

from conftest import BACK, FRONT, FakeCamera, run
from deepsight.adapters.camera.mock_camera import MockCamera
from deepsight.orchestrator.contracts import DeviceDescriptor, DeviceHandle
from deepsight.orchestrator.errors import CaptureError, HardwareUnavailable, NoDeviceFound


def test_open_prefers_back_facing(session):
    assert run(FakeCamera(session).open()).descriptor == BACK


def test_open_without_preference_takes_first(session):
    assert run(FakeCamera(session).open(prefer_back_facing=False)).descriptor == FRONT


def test_open_with_no_devices_raises_no_device_found(session):
    with pytest.raises(NoDeviceFound):
        run(FakeCamera(session, devices=()).open())


def test_enumeration_timeout_is_hardware_unavailable(session):
    camera = FakeCamera(session, enumerate_delay=0.5, enumerate_timeout_s=0.05)
    with pytest.raises(HardwareUnavailable):
        run(camera.list_devices())


def test_enumeration_platform_error_is_normalized(session):
    camera = FakeCamera(session)
    camera.enumerate_error = PermissionError("camera permission denied")
    with pytest.raises(HardwareUnavailable):
        run(camera.open())


def test_capture_fault_is_capture_error(session):
    camera = FakeCamera(session)
    camera.capture_errors.append(OSError("HAL locked"))

    async def main():
        handle = await camera.open()
        await camera.capture_still(handle)

    with pytest.raises(CaptureError):
        run(main())


def test_capture_on_released_handle_fails(session):
    camera = FakeCamera(session)

    async def main():
        handle = await camera.open()
        await camera.release(handle)
        await camera.release(handle)
        assert camera.releases == 1
        await camera.capture_still(handle)

    with pytest.raises(CaptureError):
        run(main())
    assert camera.captures == 0


def test_mock_camera_placeholder_and_frames(session, tmp_path):
    empty = MockCamera(session, frames_dir=str(tmp_path / "missing"))

    async def grab(camera):
        return await camera.capture_still(await camera.open())

    assert run(grab(empty)).startswith(b"\xff\xd8")

    (tmp_path / "street.jpg").write_bytes(b"\xff\xd8street\xff\xd9")
    assert run(grab(MockCamera(session, frames_dir=str(tmp_path)))) == b"\xff\xd8street\xff\xd9"


def test_mock_camera_with_only_front_lens(session):
    only = DeviceDescriptor(device_id="x", name="Only", lens="front")
    assert run(MockCamera(session, devices=[only]).open()).descriptor == only


class SlowCap:
    """Stands in for cv2.VideoCapture; a read takes a while on a worker thread."""

    def __init__(self):
        self.opened = True
        self.reading = False
        self.released_mid_read = False

    def isOpened(self):
        return self.opened

    def read(self):
        self.reading = True
        time.sleep(0.1)
        self.reading = False
        return False, None

    def release(self):
        if self.reading:
            self.released_mid_read = True
        self.opened = False


def test_cv2_release_waits_for_in_flight_read(session):
    from deepsight.adapters.camera.cv2_camera import CV2Camera

    camera = CV2Camera(session)
    cap = SlowCap()
    handle = DeviceHandle(descriptor=BACK, native=cap)

    async def main():
        capture = asyncio.create_task(camera.capture_still(handle))
        await asyncio.sleep(0.02)
        await camera.release(handle)
        with pytest.raises(CaptureError):
            await capture

    run(main())
    assert not cap.released_mid_read
    assert not cap.opened
    assert handle.native is None
