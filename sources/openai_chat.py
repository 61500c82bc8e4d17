#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
OpenAI Chat Completions adapter.
Works with any endpoint speaking the same protocol (base_url is configurable).

API Documentation:
https://platform.openai.com/docs/api-reference/chat

Authentication: bearer API key
"""

import requests
from typing import Any, Dict

from orchestrator.errors import OracleUnavailable
from .base import ClassificationOracle


class OpenAIChatOracle(ClassificationOracle):
    """
    Chat Completions classification oracle.

    Sends the prompt as a single user message and returns the text of the
    first choice.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4-turbo",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        session: requests.Session = None
    ):
        """
        Initialize the oracle.

        Args:
            api_key: Bearer token
            model: Chat model name
            base_url: API root, without the /chat/completions suffix
            timeout: Seconds before the HTTP call gives up
            session: Optional preconfigured requests session
        """
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json"
        })

    @classmethod
    def from_settings(cls, settings) -> "OpenAIChatOracle":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.timeout
        )

    @property
    def name(self) -> str:
        return "Oracle"

    def classify(self, request_text: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "user", "content": request_text}
            ]
        }

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise OracleUnavailable(f"Chat completion request failed: {e}") from e
        except ValueError as e:
            raise OracleUnavailable(f"Chat completion returned invalid JSON: {e}") from e

        return self._extract_content(data)

    def _extract_content(self, data: Dict[str, Any]) -> str:
        """Pull the first choice's message text out of the response body"""
        try:
            choices = data["choices"]
            message = choices[0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleUnavailable(f"Unexpected chat completion payload: {e}") from e

        # content is null when the model refuses or returns only tool calls
        return message.get("content") or ""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, base_url={self.base_url})"
