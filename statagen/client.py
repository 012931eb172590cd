# statagen/client.py
"""
Gemini LLM Client - Wrapper for Google Gemini API

This module provides the single interface StataGen uses to reach the
language model:
- Text generation, optionally with a thinking level
- Structured JSON outputs via a response schema
- Async calls through client.aio, driven by the wizard session
"""

import os
from typing import Any, Dict, Optional

from google import genai
from google.genai import types


class GeminiLLMClient:
    """
    A wrapper class for interacting with Google's Gemini text models.

    Attributes:
        client: Gemini client configured for text generation
        model: The text model name (e.g., "gemini-2.5-flash")
    """

    def __init__(self, model: str = "gemini-2.5-flash", api_version: str = "v1beta"):
        """
        Initialize the Gemini client.

        Args:
            model: Model name for text generation
            api_version: API version (default: v1beta)

        Raises:
            RuntimeError: If no API key is found in environment variables
        """
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")

        if not api_key and not os.getenv("GOOGLE_GENAI_USE_VERTEXAI"):
            raise RuntimeError(
                "Missing GEMINI_API_KEY or GOOGLE_API_KEY environment variable. "
                "Please set one of these, or configure Vertex AI environment variables."
            )

        self.client = genai.Client(
            api_key=api_key,
            http_options={"api_version": api_version}
        )
        self.model = model

    def _build_config(
        self,
        system_prompt: str,
        thinking_level: Optional[str],
        response_schema: Optional[Dict[str, Any]],
    ) -> types.GenerateContentConfig:
        cfg = types.GenerateContentConfig(system_instruction=system_prompt)

        # Not every model accepts a thinking level; only send it when configured
        if thinking_level:
            cfg.thinking_config = types.ThinkingConfig(thinking_level=thinking_level)

        if response_schema is not None:
            cfg.response_mime_type = "application/json"
            cfg.response_schema = response_schema

        return cfg

    async def acall_text(
        self,
        system_prompt: str,
        user_text: str,
        thinking_level: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Generate text using the Gemini text model (through client.aio).

        Args:
            system_prompt: The system instruction that sets the AI's behavior
            user_text: The user's input/query
            thinking_level: Optional chain-of-thought depth ("low", "high")
            response_schema: Optional JSON schema for structured output

        Returns:
            The generated text response (may be None if the model returned nothing)
        """
        resp = await self.client.aio.models.generate_content(
            model=self.model,
            contents=user_text,
            config=self._build_config(system_prompt, thinking_level, response_schema),
        )
        return resp.text


def create_client(config: dict) -> GeminiLLMClient:
    """Build a client from the 'models' and 'google_genai' config sections."""
    models = config.get("models", {})
    api_config = config.get("google_genai", {})
    return GeminiLLMClient(
        model=models.get("text", "gemini-2.5-flash"),
        api_version=api_config.get("api_version", "v1beta"),
    )
