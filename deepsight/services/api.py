"""
Observer surface for the scan loop: status polling and lifecycle controls.

Run:  uvicorn deepsight.services.api:app
The client posts /start from a user gesture and /pause, /resume from its
foreground lifecycle events.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from deepsight import config
from deepsight.adapters.tts.base import SpeechSettings
from deepsight.adapters.tts.player_local import LocalPlayerTTS
from deepsight.orchestrator.contracts import CaptureProfile
from deepsight.orchestrator.feedback import FeedbackActuator
from deepsight.orchestrator.session import SessionController
from deepsight.services.models import ActionResponse, HealthResponse, StatusResponse, VerdictOut
from deepsight.services.status_store import Session


def build_vision_factory(status):
    adapter = config.VISION_ADAPTER
    timeout = config.INFERENCE_TIMEOUT_S

    if adapter == "gemini":
        from deepsight.adapters.vision.gemini_vision import GeminiVision
        return lambda key: GeminiVision(status, key, model=config.GEMINI_MODEL, timeout_s=timeout)
    if adapter == "claude":
        from deepsight.adapters.vision.claude_vision import ClaudeVision
        return lambda key: ClaudeVision(status, key, model=config.CLAUDE_MODEL, timeout_s=timeout)
    if adapter == "kimi":
        from deepsight.adapters.vision.kimi_vision import KimiVision
        return lambda key: KimiVision(status, key, model=config.KIMI_MODEL, timeout_s=timeout)

    from deepsight.adapters.vision.mock_vision import MockVision
    status.log(f"vision adapter: '{adapter}' -> mock")
    return lambda key: MockVision(status, timeout_s=timeout)


def build_camera(status):
    profile = CaptureProfile(config.CAPTURE_PROFILE) if config.CAPTURE_PROFILE in ("native", "generic") \
        else CaptureProfile.GENERIC
    if config.CAMERA_ADAPTER == "cv2":
        try:
            from deepsight.adapters.camera.cv2_camera import CV2Camera
            status.log("camera: CV2Camera")
            return CV2Camera(status, profile=profile, enumerate_timeout_s=config.CAMERA_ENUM_TIMEOUT_S,
                             probe_max=config.CAMERA_PROBE_MAX, back_index=config.CAMERA_BACK_INDEX)
        except ImportError:
            status.log("camera: opencv not installed, using MockCamera")
    from deepsight.adapters.camera.mock_camera import MockCamera
    return MockCamera(status, frames_dir=config.MOCK_FRAMES_DIR, profile=profile,
                      enumerate_timeout_s=config.CAMERA_ENUM_TIMEOUT_S)


def build_vibration(status):
    if config.HAPTICS_ADAPTER == "http":
        from deepsight.adapters.haptics.http_haptics import HttpVibration
        status.log(f"haptics: http -> {config.HAPTICS_HTTP_BASE_URL}")
        return HttpVibration(status, base_url=config.HAPTICS_HTTP_BASE_URL)
    if config.HAPTICS_ADAPTER == "mock":
        from deepsight.adapters.haptics.mock_haptics import MockVibration
        return MockVibration(status)
    from deepsight.adapters.haptics.base import NullVibration
    return NullVibration()


def build_controller(session: Optional[Session] = None) -> SessionController:
    session = session or Session(low_power=config.LOW_POWER)
    player = LocalPlayerTTS(session)
    settings = SpeechSettings(language=config.SPEECH_LANGUAGE, rate=config.SPEECH_RATE,
                              volume=config.SPEECH_VOLUME)
    feedback = FeedbackActuator(player, build_vibration(session), player, session, settings=settings)
    return SessionController(
        session,
        build_camera(session),
        feedback,
        build_vision_factory(session),
        interval_s=config.SCAN_INTERVAL_S,
        low_power_interval_s=config.LOW_POWER_INTERVAL_S,
    )


def _status_out(ctl: SessionController) -> StatusResponse:
    s = ctl.session
    v = s.last_verdict
    verdict = VerdictOut(
        severity=v.severity.value,
        direction=v.direction,
        distance_steps=v.distance_steps,
        distance_unit=v.distance_unit,
        text=v.display_text,
    ) if v else None
    return StatusResponse(
        state=s.state.value,
        advice=s.advice,
        user_enabled=s.user_enabled,
        paused=s.paused,
        inert=s.inert,
        low_power=s.low_power,
        scanning=ctl.loop.running,
        beeping=ctl.feedback.beeping,
        cycles=ctl.loop.cycles,
        verdict=verdict,
        last_error=s.last_error,
        logs=s.logs,
    )


def _action(ctl: SessionController, ok: bool = True, error: Optional[str] = None) -> ActionResponse:
    return ActionResponse(ok=ok, state=ctl.session.state.value, error=error)


def create_app(controller: Optional[SessionController] = None,
               api_key: Optional[str] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctl = controller or build_controller()
        key = api_key if api_key is not None else config.api_key_for(config.VISION_ADAPTER)
        async with ctl:
            app.state.controller = ctl
            await ctl.initialize(key)
            yield

    app = FastAPI(title="deepsight", lifespan=lifespan)

    def ctl_of(request: Request) -> SessionController:
        return request.app.state.controller

    @app.get("/status", response_model=StatusResponse)
    async def get_status(request: Request):
        return _status_out(ctl_of(request))

    @app.post("/start", response_model=ActionResponse)
    async def start(request: Request):
        ctl = ctl_of(request)
        await ctl.start()
        return _action(ctl)

    @app.post("/stop", response_model=ActionResponse)
    async def stop(request: Request):
        ctl = ctl_of(request)
        await ctl.stop()
        return _action(ctl)

    @app.post("/pause", response_model=ActionResponse)
    async def pause(request: Request):
        ctl = ctl_of(request)
        await ctl.pause()
        return _action(ctl)

    @app.post("/resume", response_model=ActionResponse)
    async def resume(request: Request):
        ctl = ctl_of(request)
        await ctl.resume()
        return _action(ctl)

    @app.post("/retry", response_model=ActionResponse)
    async def retry(request: Request):
        ctl = ctl_of(request)
        ok = await ctl.retry()
        return _action(ctl, ok=ok, error=None if ok else "not in a failure state")

    @app.post("/low_power", response_model=ActionResponse)
    async def low_power(request: Request, enabled: bool = True):
        ctl = ctl_of(request)
        ctl.set_low_power(enabled)
        return _action(ctl)

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request):
        ctl = ctl_of(request)
        camera_open = ctl.session.capture_device is not None
        inference_ready = ctl.client is not None
        return HealthResponse(
            api=True,
            vision_adapter=type(ctl.client).__name__ if ctl.client else "none",
            camera_adapter=type(ctl.camera).__name__,
            haptics_adapter=type(ctl.feedback.vibration).__name__,
            camera_open=camera_open,
            inference_ready=inference_ready,
            all_ok=camera_open and inference_ready,
        )

    return app


app = create_app()
