"""OpenAI categorizer adapter.

Implements CategorizerPort by invoking the OpenAI API (or any
OpenAI-compatible endpoint) to translate and categorize release notes.
Supports both the chat completions and the responses API.
"""

import asyncio
import logging
from typing import Any, Literal

from relwatch.core.models import CategorizedItem, RemoteItem
from relwatch.core.ports import CategorizerPort

from .prompts import build_system_prompt, extract_json, parse_categories

logger = logging.getLogger(__name__)

OpenAIMode = Literal["completions", "responses"]


class OpenAICategorizerAdapter(CategorizerPort):
    """OpenAI API-based categorizer."""

    def __init__(
        self,
        api_key: str,
        model: str,
        target_lang: str = "English",
        base_url: str | None = None,
        mode: OpenAIMode = "completions",
        timeout: float = 60.0,
    ):
        """Initialize OpenAI categorizer.

        Args:
            api_key: OpenAI API key.
            model: Model name (e.g. 'gpt-4o-mini').
            target_lang: Language the items are translated into.
            base_url: Optional OpenAI-compatible endpoint.
            mode: 'completions' for chat completions, 'responses' for the
                responses API.
            timeout: Request timeout in seconds.

        Raises:
            ValueError: If API key or model is empty.
        """
        if not api_key or not api_key.strip():
            raise ValueError(
                "OpenAI API key must be provided and non-empty. "
                "Set AI_API_KEY environment variable."
            )
        if not model or not model.strip():
            raise ValueError("Model name must be provided. Set AI_MODEL environment variable.")
        self.api_key = api_key
        self.model = model
        self.target_lang = target_lang
        self.base_url = base_url
        self.mode = mode
        self.timeout = timeout

        # Lazy import to avoid requiring openai if not used
        self._client: Any | None = None

    async def _get_client(self) -> Any:
        """Get or initialize the OpenAI synchronous client."""
        if self._client is None:
            try:
                from openai import OpenAI
            except ImportError:
                raise ImportError(
                    "openai package required for OpenAI adapter. "
                    "Install with: pip install openai"
                )
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def categorize(self, item: RemoteItem) -> CategorizedItem:
        """Ask the model to categorize the item body."""
        output = await self._invoke_openai(item.body)
        categories = parse_categories(extract_json(output))
        return CategorizedItem(
            identifier=item.identifier,
            published_at=item.published_at,
            url=item.url,
            categories=categories,
        )

    async def _invoke_openai(self, body: str) -> str:
        """Invoke the OpenAI API and return the raw reply text.

        Raises:
            RuntimeError: If the API returns an empty reply.
        """
        client = await self._get_client()
        system_prompt = build_system_prompt(self.target_lang)

        def _call_openai() -> str:
            """Synchronous wrapper for the OpenAI API call."""
            if self.mode == "responses":
                response = client.responses.create(
                    model=self.model,
                    instructions=system_prompt,
                    input=body,
                    timeout=self.timeout,
                )
                text = getattr(response, "output_text", "") or ""
            else:
                response = client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": body},
                    ],
                    response_format={"type": "json_object"},
                    timeout=self.timeout,
                )
                text = ""
                if response.choices and response.choices[0].message:
                    text = response.choices[0].message.content or ""

            if not text.strip():
                raise RuntimeError("OpenAI API returned empty response")
            return text

        # Run in executor to avoid blocking the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _call_openai)
