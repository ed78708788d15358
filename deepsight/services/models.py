from pydantic import BaseModel
from typing import Literal, Optional

StateName = Literal["initializing", "ready", "processing", "camera_failure", "error"]
SeverityName = Literal["danger", "caution", "safe", "unknown"]


class VerdictOut(BaseModel):
    severity: SeverityName
    direction: Optional[str] = None
    distance_steps: Optional[float] = None
    distance_unit: Optional[str] = None
    text: str


class StatusResponse(BaseModel):
    state: StateName
    advice: str
    user_enabled: bool
    paused: bool
    inert: bool                 # no API key: scanning can never start
    low_power: bool
    scanning: bool              # loop task alive
    beeping: bool
    cycles: int
    verdict: Optional[VerdictOut] = None
    last_error: Optional[str] = None
    logs: list[str]


class ActionResponse(BaseModel):
    ok: bool
    state: StateName
    error: Optional[str] = None


class HealthResponse(BaseModel):
    api: bool
    vision_adapter: str
    camera_adapter: str
    haptics_adapter: str
    camera_open: bool
    inference_ready: bool
    all_ok: bool
