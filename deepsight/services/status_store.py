from dataclasses import dataclass, field
from typing import Callable, List, Optional

from deepsight.orchestrator.contracts import DeviceHandle, HazardVerdict, SystemState

Observer = Callable[["Session"], None]


@dataclass
class Session:
    """Process-wide session state. SessionController is the only writer of `state`."""
    api_key: Optional[str] = None
    capture_device: Optional[DeviceHandle] = None
    state: SystemState = SystemState.INITIALIZING
    advice: str = "Initializing systems..."
    user_enabled: bool = False
    paused: bool = False
    inert: bool = False             # no API key: scanning disabled
    low_power: bool = False
    last_verdict: Optional[HazardVerdict] = None
    last_error: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    _observers: List[Observer] = field(default_factory=list, repr=False)

    def log(self, msg: str):
        self.logs.append(msg)
        if len(self.logs) > 200:
            self.logs = self.logs[-200:]

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)
        return unsubscribe

    def notify(self):
        # copy: observers may unsubscribe while being notified
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception as e:
                self.log(f"session: observer error {type(e).__name__}: {e}")

    def set_state(self, state: SystemState, advice: Optional[str] = None):
        self.state = state
        if advice is not None:
            self.advice = advice
        self.notify()
