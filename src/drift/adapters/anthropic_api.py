"""Anthropic Messages API adapter - HTTP client for text generation."""

import logging

import requests

logger = logging.getLogger(__name__)

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-haiku-4-5-20251001"


class AnthropicAPIService:
    """
    Anthropic API adapter.

    Implements LLMService protocol. No prompt logic - just I/O. Transport and
    API failures are raised as RuntimeError, like the CLI adapter.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: int = 60,
        max_tokens: int = 1024,
        session: requests.Session | None = None,
    ):
        if not api_key:
            raise ValueError("Anthropic API key is required")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._session = session or requests.Session()

    def generate(self, prompt: str) -> str:
        """Generate text from a prompt. Returns complete response."""
        try:
            resp = self._session.post(
                API_URL,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                    "content-type": "application/json",
                },
                json={
                    "model": self.model,
                    "max_tokens": self.max_tokens,
                    "messages": [{"role": "user", "content": prompt}],
                },
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise RuntimeError(f"Anthropic API timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise RuntimeError(f"Anthropic API request failed: {e}")

        if resp.status_code != 200:
            logger.error(f"Anthropic API error {resp.status_code}: {resp.text}")
            raise RuntimeError(f"Anthropic API error {resp.status_code}: {resp.text}")

        data = resp.json()
        return "".join(
            block.get("text", "") for block in data.get("content", []) if block.get("type") == "text"
        )
