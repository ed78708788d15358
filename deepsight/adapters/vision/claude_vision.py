"""
Claude vision client.

Sends the frame to a Claude model via the Anthropic API with the fixed
spatial-safety system prompt. Requires ANTHROPIC_API_KEY.
SDK retries are disabled: one attempt per call.
"""
import base64
import anthropic
from deepsight.adapters.vision.base import VisionAdapter
from deepsight.adapters.vision.prompt import SYSTEM_PROMPT, TEMPERATURE, MAX_OUTPUT_TOKENS
from deepsight.orchestrator.errors import (
    InferenceTimeout, RateLimited, ServiceError, parse_retry_after,
)


class ClaudeVision(VisionAdapter):
    name = "claude_vision"

    def __init__(self, status_store, api_key: str, model: str = "claude-haiku-4-5-20251001",
                 timeout_s: float = 5.0, client: anthropic.AsyncAnthropic | None = None):
        super().__init__(status_store, timeout_s=timeout_s)
        self.model = model
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key, max_retries=0, timeout=timeout_s)
        self.status.log(f"claude_vision: ready ({model})")

    async def _generate(self, image_bytes: bytes, prompt: str) -> str:
        b64 = base64.standard_b64encode(image_bytes).decode("utf-8")
        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=MAX_OUTPUT_TOKENS,
                temperature=TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": "image/jpeg",
                                    "data": b64,
                                },
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
            )
        except anthropic.APITimeoutError as e:
            raise InferenceTimeout(str(e)) from e
        except anthropic.RateLimitError as e:
            raise RateLimited(str(e), retry_after=parse_retry_after(e.response.headers.get("retry-after"))) from e
        except anthropic.APIError as e:
            raise ServiceError(str(e)) from e

        raw = "".join(block.text for block in message.content if getattr(block, "type", "") == "text").strip()
        self.status.log(f"claude_vision: raw response = '{raw}'")
        return raw

    async def aclose(self):
        await self._client.close()
