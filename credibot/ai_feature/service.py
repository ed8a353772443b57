"""
Language model completion service.

One chat completion per call:
    system instruction (optional) + user text -> generated text + token usage

A fresh client is opened for every call and closed afterwards, so no
connection state is shared between requests. Retries are disabled: a
failed call is reported to the caller as CompletionError.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from credibot.core.schemas import Usage

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The language model call failed or returned nothing usable."""


@dataclass
class Completion:
    text: str
    model: str
    usage: Usage


class CompletionService:
    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: OpenAI API key (empty = not configured)
            timeout: Transport timeout in seconds
            base_url: Alternative OpenAI-compatible endpoint
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url
        self.transport = transport

    def _open_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise CompletionError("OpenAI API key not configured")

        http_client = None
        if self.transport is not None:
            http_client = httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

        return AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(
        self,
        user_text: str,
        model: str,
        max_tokens: int,
        temperature: float,
        system: Optional[str] = None,
    ) -> Completion:
        """
        Run one chat completion.

        Raises:
            CompletionError: missing key, API/transport error, or empty choices
        """
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user_text})

        async with self._open_client() as client:
            try:
                response = await client.chat.completions.create(
                    model=model,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            except openai.OpenAIError as e:
                logger.error(f"Completion call failed ({model}): {e}")
                raise CompletionError(str(e)) from e

        if not response.choices:
            raise CompletionError("no response from OpenAI")

        usage = Usage()
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        logger.info(f"Completion ok: model={response.model} tokens={usage.total_tokens}")
        return Completion(
            text=response.choices[0].message.content or "",
            model=response.model,
            usage=usage,
        )
