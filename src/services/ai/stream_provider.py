"""Text delta providers feeding the generation engine."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from typing import Protocol

from pydantic_ai import Agent
from pydantic_ai.models import Model

from core.config import get_settings
from services.ai.model_factory import get_generation_model
from services.ai.prompts import GENERATION_SYSTEM_PROMPT


logger = logging.getLogger(__name__)


class TokenStreamProvider(Protocol):
    """Anything that can stream the text of one completion as deltas."""

    def stream_text(self, prompt: str) -> AsyncIterator[str]:  # pragma: no cover
        ...


class PydanticAIStreamProvider:
    """Stream a completion through a pydantic-ai Agent.

    The agent is built on each call, so a provider instance holds no
    per-session state and can be shared between concurrent requests.
    """

    def __init__(
        self,
        model_factory: Callable[[], Model] = get_generation_model,
        system_prompt: str = GENERATION_SYSTEM_PROMPT,
        max_tokens: int | None = None,
    ) -> None:
        self._model_factory = model_factory
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens

    def create_agent(self) -> Agent[None, str]:
        return Agent(
            self._model_factory(),
            output_type=str,
            system_prompt=self._system_prompt,
        )

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        max_tokens = self._max_tokens or get_settings().GENERATION_MAX_TOKENS
        agent = self.create_agent()
        logger.debug("Streaming generation (%d prompt chars)", len(prompt))
        async with agent.run_stream(
            prompt, model_settings={"max_tokens": max_tokens}
        ) as result:
            async for delta in result.stream_text(delta=True):
                yield delta
