"""Anthropic categorizer adapter.

Implements CategorizerPort by invoking the Anthropic messages API to
translate and categorize release notes.
"""

import asyncio
import logging
from typing import Any

from relwatch.core.models import CategorizedItem, RemoteItem
from relwatch.core.ports import CategorizerPort

from .prompts import build_system_prompt, extract_json, parse_categories

logger = logging.getLogger(__name__)


class AnthropicCategorizerAdapter(CategorizerPort):
    """Anthropic API-based categorizer."""

    def __init__(
        self,
        api_key: str,
        model: str,
        target_lang: str = "English",
        base_url: str | None = None,
        max_tokens: int = 2048,
        timeout: float = 60.0,
    ):
        if not api_key or not api_key.strip():
            raise ValueError(
                "Anthropic API key must be provided and non-empty. "
                "Set AI_API_KEY environment variable."
            )
        if not model or not model.strip():
            raise ValueError("Model name must be provided. Set AI_MODEL environment variable.")
        self.api_key = api_key
        self.model = model
        self.target_lang = target_lang
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client: Any | None = None

    async def _get_client(self) -> Any:
        """Get or initialize the Anthropic synchronous client."""
        if self._client is None:
            try:
                from anthropic import Anthropic
            except ImportError:
                raise ImportError(
                    "anthropic package required for Anthropic adapter. "
                    "Install with: pip install 'relwatch[anthropic]'"
                )
            self._client = Anthropic(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def categorize(self, item: RemoteItem) -> CategorizedItem:
        """Ask the model to categorize the item body."""
        output = await self._invoke_anthropic(item.body)
        categories = parse_categories(extract_json(output))
        return CategorizedItem(
            identifier=item.identifier,
            published_at=item.published_at,
            url=item.url,
            categories=categories,
        )

    async def _invoke_anthropic(self, body: str) -> str:
        client = await self._get_client()
        system_prompt = build_system_prompt(self.target_lang)

        def _call_anthropic() -> str:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": body}],
                timeout=self.timeout,
            )
            text = "".join(
                getattr(block, "text", "") for block in response.content
            )
            if not text.strip():
                raise RuntimeError("Anthropic API returned empty response")
            return text

        return await asyncio.to_thread(_call_anthropic)
