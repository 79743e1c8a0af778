import asyncio
import json
import logging
from typing import Any, Dict, Optional

import openai

from ..logic.errors import ServiceUnavailable
from ..settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class TextGenerationClient:
    """
    Thin wrapper over an OpenAI-compatible chat completions endpoint that
    always asks for a JSON object back.

    Every failure (not configured, network error, timeout, empty or non-JSON
    content) surfaces as ServiceUnavailable so callers can fall back.
    """

    def __init__(self, config: Optional[Settings] = None, client: Optional[Any] = None):
        self.config = config or default_settings
        self.model = self.config.llm_model
        self.timeout_seconds = self.config.llm_timeout_seconds
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None or self.config.llm_available

    def _get_client(self):
        if self._client is None:
            if not self.config.llm_available:
                raise ServiceUnavailable("Text generation service is not configured or disabled")
            self._client = openai.AsyncOpenAI(
                api_key=self.config.llm_api_key,
                base_url=self.config.llm_base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> Dict[str, Any]:
        """
        Send one system + user exchange and parse the JSON reply.

        Args:
            system_prompt: Instructions and output format
            user_prompt: Request-specific content
            temperature: Sampling temperature
            max_tokens: Output token limit

        Returns:
            Parsed JSON object
        """
        client = self._get_client()

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ServiceUnavailable(f"Text generation timed out after {self.timeout_seconds}s") from e
        except openai.OpenAIError as e:
            raise ServiceUnavailable(f"Text generation request failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise ServiceUnavailable("Text generation returned no choices") from e

        if not content:
            raise ServiceUnavailable("Text generation returned empty content")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise ServiceUnavailable(f"Text generation returned invalid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise ServiceUnavailable("Text generation returned JSON that is not an object")

        return parsed
