import base64
import json
import logging
import re
from typing import TypeVar

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from app.config import (
    ANTHROPIC_API_KEY,
    LLM_DEFAULT_TIER,
    LLM_MODEL_FAST,
    LLM_MODEL_HIGH,
    LLM_MODEL_STANDARD,
    LLM_PROVIDER,
    LLM_TIMEOUT_SECONDS,
    OPENAI_API_KEY,
    TTS_MODEL,
    TTS_VOICE,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# OpenAI "pcm" speech output is raw 24 kHz signed 16-bit little-endian mono.
PCM_MIME_TYPE = "audio/L16;codec=pcm;rate=24000"

_ANTHROPIC_DEFAULTS = {
    "fast": "claude-3-5-haiku-latest",
    "standard": "claude-sonnet-4-5",
    "high": "claude-sonnet-4-5",
}

_OPENAI_DEFAULTS = {
    "fast": "gpt-4o-mini",
    "standard": "gpt-4o",
    "high": "gpt-4o",
}

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+)(?:;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)


def _strip_json(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        return text[start:end + 1]
    return text


def _split_data_uri(data_uri: str) -> tuple[str, str]:
    """Return (mime_type, base64_payload) for a ``data:<mime>;base64,...`` URI."""
    match = _DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise ValueError("Expected a base64 data URI")
    return match.group("mime"), match.group("data")


def _schema_hint(response_model: type[BaseModel]) -> str:
    properties = response_model.model_json_schema(by_alias=True).get("properties", {})
    keys = ", ".join(f'"{name}"' for name in properties)
    return f"Return ONLY a valid JSON object with these keys: {keys}."


class LLMClient:
    def __init__(self) -> None:
        provider = (LLM_PROVIDER or "auto").lower()
        if provider == "auto":
            if OPENAI_API_KEY:
                provider = "openai"
            elif ANTHROPIC_API_KEY:
                provider = "anthropic"
            else:
                provider = "dummy"
        self.provider = provider

        self._anthropic = (
            AsyncAnthropic(api_key=ANTHROPIC_API_KEY, timeout=LLM_TIMEOUT_SECONDS)
            if ANTHROPIC_API_KEY
            else None
        )
        self._openai = (
            AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=LLM_TIMEOUT_SECONDS)
            if OPENAI_API_KEY
            else None
        )

    def available(self) -> bool:
        if self.provider == "anthropic":
            return self._anthropic is not None
        if self.provider == "openai":
            return self._openai is not None
        return False

    def speech_available(self) -> bool:
        # Only the OpenAI audio API produces speech.
        return self._openai is not None

    def model_for_tier(self, tier: str | None) -> str:
        tier = (tier or LLM_DEFAULT_TIER or "fast").lower()
        if tier not in ("fast", "standard", "high"):
            tier = "standard"

        if tier == "fast" and LLM_MODEL_FAST:
            return LLM_MODEL_FAST
        if tier == "standard" and LLM_MODEL_STANDARD:
            return LLM_MODEL_STANDARD
        if tier == "high" and LLM_MODEL_HIGH:
            return LLM_MODEL_HIGH

        if self.provider == "anthropic":
            return _ANTHROPIC_DEFAULTS[tier]
        return _OPENAI_DEFAULTS[tier]

    async def generate_json(
        self,
        *,
        system: str,
        user: str,
        response_model: type[T],
        image_data_uri: str | None = None,
        max_tokens: int = 2048,
        tier: str | None = None,
    ) -> T:
        """Run one prompt and validate the reply against ``response_model``.

        Raises on provider failure or when the reply does not validate.
        """
        if not self.available():
            raise RuntimeError("LLM provider unavailable")

        model = self.model_for_tier(tier)

        if self.provider == "anthropic":
            content: list[dict] = []
            if image_data_uri:
                mime_type, payload = _split_data_uri(image_data_uri)
                content.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": mime_type, "data": payload},
                })
            content.append({"type": "text", "text": user})

            message = await self._anthropic.messages.create(
                model=model,
                max_tokens=max_tokens,
                system=f"{system}\n\n{_schema_hint(response_model)}",
                messages=[{"role": "user", "content": content}],
            )
            raw = ""
            for block in message.content:
                if hasattr(block, "text"):
                    raw += block.text
            raw = _strip_json(raw)
            try:
                return response_model.model_validate_json(raw)
            except ValidationError:
                payload = json.loads(raw)
                return response_model.model_validate(payload)

        if image_data_uri:
            user_content: str | list[dict] = [
                {"type": "text", "text": user},
                {"type": "image_url", "image_url": {"url": image_data_uri}},
            ]
        else:
            user_content = user

        response = await self._openai.beta.chat.completions.parse(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user_content},
            ],
            response_format=response_model,
        )
        parsed = response.choices[0].message.parsed
        if parsed is None:
            raise RuntimeError("LLM parse returned no data")
        return parsed

    async def synthesize_speech(self, text: str, voice: str | None = None) -> str | None:
        """Generate speech for ``text``.

        Returns raw PCM samples as a base64 data URI, or None when the provider
        produced no audio.
        """
        if not self.speech_available():
            raise RuntimeError("Speech provider unavailable")

        response = await self._openai.audio.speech.create(
            model=TTS_MODEL,
            voice=voice or TTS_VOICE,
            input=text,
            response_format="pcm",
        )
        audio = response.content
        if not audio:
            return None
        return f"data:{PCM_MIME_TYPE};base64,{base64.b64encode(audio).decode('ascii')}"


_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
