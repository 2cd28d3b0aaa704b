"""`generate()` collaborator backed by the Google GenAI SDK.

Defaults to a deterministic mock that echoes the prompt without touching the
network. The real SDK path is used only when the configuration enables it.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from google import genai
from google.genai import types

from adaptive_generation.config.types import FrozenConfig
from adaptive_generation.core.types import (
    FinishReason,
    GenerationBudget,
    GenerationResponse,
    OutputMode,
)
from adaptive_generation.exceptions import ConfigurationError, GenerationError

log = logging.getLogger(__name__)

_FINISH_REASONS = {
    types.FinishReason.STOP: FinishReason.STOP,
    types.FinishReason.MAX_TOKENS: FinishReason.SIZE_LIMIT,
}


def map_finish_reason(reason: Any) -> FinishReason:
    """Collapse SDK finish reasons into stop / size limit / error."""
    if reason is None:
        return FinishReason.STOP
    return _FINISH_REASONS.get(reason, FinishReason.ERROR)


def build_generate_config(budget: GenerationBudget) -> types.GenerateContentConfig:
    structured = budget.output_mode is OutputMode.STRUCTURED
    return types.GenerateContentConfig(
        max_output_tokens=budget.max_output_size,
        temperature=budget.creativity,
        response_mime_type="application/json" if structured else "text/plain",
        http_options=types.HttpOptions(timeout=budget.timeout_ms),
    )


class GeminiGenerator:
    """Async callable implementing ``generate(prompt, budget)``.

    Args:
        config: Frozen configuration; ``use_real_api`` selects the SDK path.
        client: Optional pre-built ``genai.Client`` (mainly for tests).
    """

    def __init__(
        self, config: FrozenConfig | None = None, *, client: genai.Client | None = None
    ) -> None:
        self.config = config or FrozenConfig()
        self._client = client

    @property
    def is_mock(self) -> bool:
        return not self.config.use_real_api and self._client is None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.config.api_key:
                raise ConfigurationError("api_key is required for real API calls")
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    async def __call__(self, prompt: str, budget: GenerationBudget) -> GenerationResponse:
        if self.is_mock:
            return GenerationResponse(
                text=f"echo: {prompt}", finish_reason=FinishReason.STOP, elapsed_ms=0.0
            )

        client = self._get_client()
        start = time.perf_counter()
        try:
            response = await client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=build_generate_config(budget),
            )
        except Exception as e:
            raise GenerationError(f"Gemini generate_content failed: {e}") from e
        elapsed_ms = (time.perf_counter() - start) * 1000

        candidates = response.candidates or []
        reason = map_finish_reason(candidates[0].finish_reason if candidates else None)
        text = response.text or ""
        log.debug(
            "Gemini returned %d chars in %.0fms (finish=%s)",
            len(text),
            elapsed_ms,
            reason.value,
        )
        return GenerationResponse(text=text, finish_reason=reason, elapsed_ms=elapsed_ms)
