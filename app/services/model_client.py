"""Text generation backend for chat replies.

Talks to any OpenAI-compatible chat completions endpoint: OpenAI itself, or
Gemini through OPENAI_BASE_URL=https://generativelanguage.googleapis.com/v1beta/openai/
"""
import logging
from typing import Any, Dict, Optional, Protocol

from openai import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    OpenAI,
    OpenAIError,
    PermissionDeniedError,
    RateLimitError,
)

from app.core.errors import ModelUnavailable
from app.services.context import AssembledPrompt, GenerationParams

logger = logging.getLogger(__name__)


class ChatModel(Protocol):
    """Anything that can turn an assembled prompt into reply text."""

    def generate(self, prompt: AssembledPrompt, params: GenerationParams) -> str:
        ...


def classify_error(error: Exception) -> str:
    """
    Reduce an SDK exception to a short diagnostic reason.

    Reasons only feed logs; every one of them means "try again later" to
    the caller.
    """
    if isinstance(error, APITimeoutError):
        return "timeout"
    if isinstance(error, APIConnectionError):
        return "network"
    if isinstance(error, (AuthenticationError, PermissionDeniedError)):
        return "invalid_credentials"
    if isinstance(error, RateLimitError):
        return "quota_exceeded"

    text = str(error).lower()
    if "api_key" in text or "api key" in text:
        return "invalid_credentials"
    if "quota" in text:
        return "quota_exceeded"
    if "safety" in text or "content_filter" in text or "content filter" in text:
        return "content_blocked"
    if isinstance(error, BadRequestError):
        return "bad_request"
    return "api_error"


class OpenAIChatModel:
    """ChatModel backed by the openai SDK."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            # Failed calls surface to the user; the SDK must not retry them
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def build_messages(self, prompt: AssembledPrompt) -> list[Dict[str, str]]:
        """
        Convert an assembled prompt to chat completion messages.

        Returns:
            Messages in OpenAI format: [{"role": "...", "content": "..."}]
        """
        messages = []

        if prompt.system_instruction:
            messages.append({"role": "system", "content": prompt.system_instruction})

        for speaker, text in prompt.history:
            messages.append({"role": speaker, "content": text})

        messages.append({"role": "user", "content": prompt.live_message})

        return messages

    def generate(self, prompt: AssembledPrompt, params: GenerationParams) -> str:
        """
        Generate a reply.

        Raises:
            ModelUnavailable: On any backend failure, including a missing
                API key and an empty or filtered reply
        """
        if self._client is None and not self.api_key:
            raise ModelUnavailable("not_configured", "OPENAI_API_KEY is not configured")

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(prompt),
            "max_tokens": params.max_output_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
            "timeout": self.timeout,
        }
        if params.top_k is not None:
            request["extra_body"] = {"top_k": params.top_k}

        try:
            response = self._get_client().chat.completions.create(**request)
        except OpenAIError as e:
            reason = classify_error(e)
            logger.error(f"Model call failed ({reason}): {str(e)}")
            raise ModelUnavailable(reason, str(e)) from e
        except Exception as e:
            logger.error(f"Model call failed (api_error): {str(e)}")
            raise ModelUnavailable("api_error", str(e)) from e

        if not response.choices:
            raise ModelUnavailable("empty_response", "no choices returned")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ModelUnavailable("content_blocked", "reply blocked by content filter")

        content = choice.message.content
        if not content:
            raise ModelUnavailable("empty_response", "reply had no text")

        return content
