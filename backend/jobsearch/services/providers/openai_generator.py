"""
OpenAI Text Generation - single-turn completions for extraction and scoring

Every call is one system + one user message at temperature 0. The client is
built once at start-up and shared by all concurrent calls.

Usage:
    from openai import AsyncOpenAI

    generator = OpenAITextGenerator(AsyncOpenAI(api_key=key))
    company = await generator.generate_text(prompt, max_tokens=150)
"""

import logging
import time
from typing import Any

from jobsearch.middleware.metrics import record_provider_call, record_provider_error

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Extract specific information from job postings. "
    "Be concise and accurate. Follow the exact format requested."
)


class OpenAITextGenerator:
    """
    TextGenerator backed by OpenAI chat completions.

    Attributes:
        client: Async OpenAI client
        model: Chat model name
        system_prompt: Instruction sent ahead of every prompt
    """

    source = "openai"

    def __init__(
        self,
        openai_client: Any,
        model: str = "gpt-4o-mini",
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.client = openai_client
        self.model = model
        self.system_prompt = system_prompt

    async def generate_text(self, prompt: str, max_tokens: int) -> str:
        """
        Return the model's reply, stripped.

        Raises:
            Whatever the OpenAI client raises (timeouts, rate limits, API
            errors); callers decide on the fallback.
        """
        if not prompt:
            return ""

        start_time = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=0,
                max_tokens=max_tokens,
            )
        except Exception as e:
            record_provider_error(self.source, "chat")
            logger.warning(f"OpenAI API call failed: {e}")
            raise
        finally:
            record_provider_call(self.source, "chat", time.perf_counter() - start_time)

        content = response.choices[0].message.content
        return (content or "").strip()
