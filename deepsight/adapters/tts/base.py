from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SpeechSettings:
    language: str = "en-US"
    rate: float = 0.5      # 0..1, 0.5 = normal speaking pace
    volume: float = 1.0    # 0..1


class SpeechAdapter(ABC):
    @abstractmethod
    async def speak(self, text: str, settings: SpeechSettings):
        """Speak text; returns when the utterance has finished."""
        ...

    async def say(self, line_key: str, settings: SpeechSettings):
        """Speak a fixed line by key (pre-recorded when available)."""
        from deepsight.adapters.tts import lines as L
        await self.speak(L.LINE_TEXT.get(line_key, line_key), settings)

    async def stop(self):
        pass


class BeepPlayer(ABC):
    @abstractmethod
    def play_beep(self):
        """Fire one short beep without waiting for playback to end."""
        ...
