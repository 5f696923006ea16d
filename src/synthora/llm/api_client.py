"""
API client for LLM providers (Anthropic, OpenAI).

Implements the language-model capability the classifier and synthesizer
depend on: given a system prompt and conversation turns, return text or a
JSON object.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any, Protocol

from ..core.errors import LanguageModelError
from .parsing import parse_json_object

logger = logging.getLogger(__name__)

Turn = dict[str, str]  # {"role": "user" | "assistant", "content": "..."}

JSON_INSTRUCTION = (
    "\n\nReturn ONLY a JSON object. Do not include any explanatory text before or after it."
)


class LanguageModel(Protocol):
    """The opaque capability: prompt + turns in, text or JSON object out."""

    async def complete(
        self,
        system_prompt: str,
        turns: list[Turn],
        *,
        structured_output: bool = False,
    ) -> str | dict[str, Any]: ...


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"


DEFAULT_MODELS = {
    LLMProvider.ANTHROPIC: "claude-3-5-sonnet-20241022",
    LLMProvider.OPENAI: "gpt-4-turbo",
}


def normalize_turns(turns: list[Turn]) -> list[Turn]:
    """
    Shape history for chat APIs.

    Drops system/empty turns and leading assistant turns, and joins
    consecutive turns of the same role so roles strictly alternate.
    """
    shaped: list[Turn] = []
    for turn in turns:
        role = turn.get("role")
        content = (turn.get("content") or "").strip()
        if role not in ("user", "assistant") or not content:
            continue
        if not shaped and role == "assistant":
            continue
        if shaped and shaped[-1]["role"] == role:
            shaped[-1] = {"role": role, "content": f"{shaped[-1]['content']}\n\n{content}"}
        else:
            shaped.append({"role": role, "content": content})
    return shaped


class LLMAPIClient:
    """
    Async API client for LLM providers.

    Supports Anthropic Claude and OpenAI GPT models.
    """

    def __init__(
        self,
        provider: LLMProvider | str = LLMProvider.ANTHROPIC,
        model: str | None = None,
        api_key: str | None = None,
        api_key_env: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 8000,
    ):
        """
        Initialize LLM API client.

        Args:
            provider: LLM provider (anthropic or openai)
            model: Model name (defaults based on provider)
            api_key: API key (if not provided, read from env)
            api_key_env: Environment variable name for API key
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Raises:
            ValueError: If no API key can be found
            ImportError: If the provider SDK is not installed
        """
        self.provider = LLMProvider(provider)
        self.temperature = temperature
        self.max_tokens = max_tokens

        if api_key_env is None:
            api_key_env = (
                "ANTHROPIC_API_KEY" if self.provider == LLMProvider.ANTHROPIC else "OPENAI_API_KEY"
            )
        self.api_key = api_key or os.environ.get(api_key_env)
        if not self.api_key:
            raise ValueError(
                f"API key not found for {self.provider.value}. Set the {api_key_env} environment variable."
            )

        self.model = model or DEFAULT_MODELS[self.provider]
        self._init_client()

    def _init_client(self) -> None:
        """Initialize provider-specific async client."""
        if self.provider == LLMProvider.ANTHROPIC:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError(
                    "Anthropic SDK not installed. Install with: pip install 'synthora[llm]'"
                )
            self.client: Any = AsyncAnthropic(api_key=self.api_key)
        else:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError("OpenAI SDK not installed. Install with: pip install 'synthora[llm]'")
            self.client = AsyncOpenAI(api_key=self.api_key)

    async def complete(
        self,
        system_prompt: str,
        turns: list[Turn],
        *,
        structured_output: bool = False,
    ) -> str | dict[str, Any]:
        """
        Run one completion.

        Args:
            system_prompt: Fixed instructions for this call
            turns: Conversation turns, oldest first
            structured_output: Parse the reply as a JSON object

        Returns:
            Reply text, or the parsed object ({} if unparsable) when
            ``structured_output`` is set

        Raises:
            LanguageModelError: If the provider call fails
        """
        messages = normalize_turns(turns)
        if not messages:
            raise LanguageModelError("Cannot call the language model without a user turn")

        if structured_output:
            system_prompt = system_prompt + JSON_INSTRUCTION

        logger.debug(f"Calling {self.provider.value} ({self.model}) with {len(messages)} turns")
        if self.provider == LLMProvider.ANTHROPIC:
            text = await self._call_anthropic(system_prompt, messages)
        else:
            text = await self._call_openai(system_prompt, messages, structured_output)

        if structured_output:
            return parse_json_object(text)
        return text

    async def _call_anthropic(self, system_prompt: str, messages: list[Turn]) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=messages,
            )
        except Exception as e:
            logger.error(f"Anthropic API call failed: {e}")
            raise LanguageModelError(f"Anthropic API call failed: {e}") from e

        return "".join(
            getattr(block, "text", "") for block in response.content if getattr(block, "type", "") == "text"
        )

    async def _call_openai(
        self, system_prompt: str, messages: list[Turn], structured_output: bool
    ) -> str:
        kwargs: dict[str, Any] = {}
        if structured_output:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "system", "content": system_prompt}, *messages],
                **kwargs,
            )
        except Exception as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise LanguageModelError(f"OpenAI API call failed: {e}") from e

        return response.choices[0].message.content or ""
