import asyncio

import pytest

from conftest import BACK, FRONT, Slow, make_rig, run
from deepsight.adapters.tts import lines as L
from deepsight.orchestrator import errors
from deepsight.orchestrator.contracts import SystemState


def record_states(rig):
    seen = []
    rig.session.subscribe(lambda s: seen.append(s.state))
    return seen


def test_initialize_opens_back_camera_and_is_ready():
    rig = make_rig()
    seen = record_states(rig)

    state = run(rig.controller.initialize("key"))
    assert state is SystemState.READY
    assert rig.session.advice == L.ADVICE_READY
    assert rig.session.capture_device.descriptor == BACK
    assert rig.session.api_key == "key"
    assert not rig.session.inert
    assert seen[0] is SystemState.INITIALIZING
    assert seen[-1] is SystemState.READY


def test_falls_back_to_first_camera_without_rear_lens():
    rig = make_rig(devices=(FRONT,))
    run(rig.controller.initialize("key"))
    assert rig.session.capture_device.descriptor == FRONT


def test_no_devices_goes_to_camera_failure_without_any_output():
    rig = make_rig(devices=())
    seen = record_states(rig)

    async def main():
        await rig.controller.initialize("key")
        await rig.controller.start()
        await asyncio.sleep(0.1)
        await rig.controller.dispose()

    run(main())
    assert rig.session.state is SystemState.CAMERA_FAILURE
    assert rig.session.advice == L.ADVICE_CAMERA_UNAVAILABLE
    assert rig.session.last_error == errors.ERR_NO_DEVICE
    assert SystemState.PROCESSING not in seen
    assert rig.camera.captures == 0
    assert rig.vision.calls == 0
    assert rig.speech.spoken == [] and rig.speech.lines == [] and rig.speech.beeps == 0
    assert rig.vibration.patterns == []


def test_enumeration_timeout_is_camera_failure():
    rig = make_rig(enumerate_delay=0.5, enumerate_timeout_s=0.05)
    assert run(rig.controller.initialize("key")) is SystemState.CAMERA_FAILURE
    assert rig.session.last_error == errors.ERR_HARDWARE_UNAVAILABLE


def test_client_construction_failure_is_fatal_error():
    rig = make_rig(factory_error=ValueError("bad model"))
    assert run(rig.controller.initialize("key")) is SystemState.ERROR
    assert rig.session.advice == "System Failure: bad model"


def test_missing_api_key_is_inert():
    rig = make_rig()
    seen = record_states(rig)

    async def main():
        await rig.controller.initialize(None)
        await rig.controller.start()
        await asyncio.sleep(0.1)
        await rig.controller.dispose()

    run(main())
    assert rig.session.inert
    assert rig.session.advice == L.ADVICE_INERT
    assert rig.visions == []
    assert SystemState.PROCESSING not in seen
    assert rig.camera.captures == 0
    assert rig.speech.lines == []


def test_start_announces_and_scans():
    rig = make_rig(replies=("CAUTION : Left - 3 steps",))

    async def main():
        await rig.controller.initialize("key")
        await rig.controller.start()
        await asyncio.sleep(0.1)
        await rig.controller.start()
        await rig.controller.stop()
        assert not rig.controller.loop.running

    run(main())
    assert rig.session.user_enabled is False
    assert rig.speech.lines == [L.ACTIVATED]
    assert rig.vision.calls >= 2
    assert rig.speech.spoken == ["CAUTION  is  Left - 3 steps"]


def test_nothing_scans_before_user_start():
    rig = make_rig()

    async def main():
        await rig.controller.initialize("key")
        await asyncio.sleep(0.1)

    run(main())
    assert rig.camera.captures == 0


def test_retry_recovers_from_camera_failure():
    rig = make_rig(devices=())

    async def main():
        await rig.controller.initialize("key")
        await rig.controller.start()
        assert rig.speech.lines == []
        rig.camera.devices = [BACK]
        assert await rig.controller.retry()
        await asyncio.sleep(0.05)
        await rig.controller.dispose()

    run(main())
    assert rig.speech.lines == [L.ACTIVATED]
    assert rig.camera.captures >= 1


def test_retry_ignored_when_not_failed():
    rig = make_rig()

    async def main():
        await rig.controller.initialize("key")
        return await rig.controller.retry()

    assert run(main()) is False
    assert rig.camera.opens == 1


def test_pause_releases_camera_and_resume_reinitializes():
    rig = make_rig()

    async def main():
        await rig.controller.initialize("key")
        await rig.controller.start()
        await asyncio.sleep(0.05)
        handle = rig.session.capture_device
        await rig.controller.pause()
        assert handle.released
        assert rig.session.capture_device is None
        assert not rig.controller.loop.running
        assert rig.session.advice == L.ADVICE_PAUSED
        captures = rig.camera.captures
        await asyncio.sleep(0.05)
        assert rig.camera.captures == captures
        await rig.controller.resume()
        assert rig.controller.loop.running
        await rig.controller.dispose()

    run(main())
    assert rig.camera.opens == 2
    assert rig.session.paused is False
    assert rig.speech.lines == [L.ACTIVATED]


def test_pause_discards_in_flight_inference():
    rig = make_rig(replies=(Slow(0.1, "DANGER : Forward - 1 step"),))

    async def main():
        await rig.controller.initialize("key")
        await rig.controller.start()
        await asyncio.sleep(0.03)
        assert rig.session.state is SystemState.PROCESSING
        await rig.controller.pause()
        await asyncio.sleep(0.15)

    run(main())
    assert rig.vision.calls == 1
    assert rig.speech.spoken == []
    assert rig.vibration.patterns == []
    assert rig.session.last_verdict is None
    assert rig.session.state is SystemState.READY


def test_low_power_switches_interval():
    rig = make_rig(interval_s=1.0)
    rig.controller.set_low_power(True)
    assert rig.controller.loop.interval_s == 2.0
    rig.controller.set_low_power(False)
    assert rig.controller.loop.interval_s == 1.0


def test_dispose_releases_on_error_exit():
    rig = make_rig()

    async def main():
        async with rig.controller as ctl:
            await ctl.initialize("key")
            await ctl.start()
            raise RuntimeError("ui crashed")

    with pytest.raises(RuntimeError):
        run(main())
    assert rig.camera.releases == 1
    assert rig.session.capture_device is None
    assert rig.vision.closed
    assert rig.vibration.closed
    assert rig.speech.stopped
    assert not rig.controller.loop.running


def test_retry_starts_capture_fault_count_afresh():
    rig = make_rig()
    ctl = rig.controller

    async def main():
        await ctl.initialize("key")
        rig.camera.capture_errors.extend(OSError("HAL locked") for _ in range(3))
        for _ in range(3):
            await ctl.loop.tick()
        assert rig.session.state is SystemState.CAMERA_FAILURE
        assert await ctl.retry()
        assert rig.session.state is SystemState.READY
        rig.camera.capture_errors.append(OSError("one glitch"))
        return await ctl.loop.tick()

    result = run(main())
    assert result.fallback
    assert rig.session.state is SystemState.READY
    assert rig.session.advice == L.ADVICE_RETRYING


def test_reinitialize_clears_rate_limit_backoff():
    rig = make_rig(replies=(errors.RateLimited("slow down"),), interval_s=1.0)
    ctl = rig.controller

    async def main():
        await ctl.initialize("key")
        await ctl.loop.tick()
        await ctl.loop.tick()
        assert ctl.loop.next_delay_s == 4.0
        await ctl.initialize("key")
        assert ctl.loop.next_delay_s == 1.0
        await ctl.loop.tick()

    run(main())
    # first backoff step again, not the third
    assert ctl.loop.next_delay_s == 2.0


def test_start_during_boot_announces_once_ready():
    rig = make_rig(enumerate_delay=0.05)

    async def main():
        boot = asyncio.create_task(rig.controller.initialize("key"))
        await asyncio.sleep(0.01)
        await rig.controller.start()
        assert rig.session.state is SystemState.INITIALIZING
        assert rig.speech.lines == []
        await boot
        assert rig.controller.loop.running
        await rig.controller.dispose()

    run(main())
    assert rig.speech.lines == [L.ACTIVATED]
