"""OpenAI chat completion model implementation."""

import time
import logging
from typing import Optional

import openai
from openai import OpenAI

from .base import CompletionModel
from ..config import Config


logger = logging.getLogger(__name__)


class OpenAICompletionModel(CompletionModel):
    """Completions from the OpenAI chat API with deterministic sampling."""

    def __init__(self, config: Config, client: Optional[OpenAI] = None, max_tokens: int = 512):
        """Initialize the OpenAI client.

        Args:
            config: Configuration object with the API key and model name
            client: Pre-built client, mainly for tests
            max_tokens: Upper bound for the completion length
        """
        self.config = config
        self.model = config.openai_model
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=config.openai_api_key)

        # Retry configuration
        self.max_retries = 3
        self.base_delay = 1.0  # seconds

    def get_model_name(self) -> str:
        return self.model

    def complete(self, prompt: str) -> str:
        """Send a single user message and return the reply text.

        Rate limit errors are retried with exponential backoff; any other
        API error is raised immediately.
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self.max_tokens,
                    temperature=0.0,
                    n=1,
                )
                return (response.choices[0].message.content or "").strip()

            except openai.RateLimitError as e:
                last_error = e
                delay = self.base_delay * (2 ** attempt)
                logger.warning(
                    f"Rate limited by OpenAI, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                time.sleep(delay)

        raise last_error
