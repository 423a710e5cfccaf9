"""
Provider adapters for alt text generation.

Each adapter turns a base64-encoded image into one vendor's JSON request,
posts it with `requests`, and pulls the first piece of generated text out of
the vendor's JSON response. The active adapter is chosen once at startup by
`build_provider()` and injected into the Flask app.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from alttext.ai_service.errors import (
    ConfigError,
    DecodeError,
    EmptyResponseError,
    ProviderError,
    ProviderTimeoutError,
    TransportError,
)
from alttext.ai_service.media import sniff_media_type
from alttext.gateway.config import Settings

MAX_TOKENS = 100
ANTHROPIC_VERSION = "2023-06-01"

OPENAI_PROMPT = "Generate an alt text description for the following image encoded in base64: {encoded_image}"
ANTHROPIC_PROMPT = "Please generate a clear and concise alt text description for this image."

# Response bodies are logged, but not in full
LOG_BODY_LIMIT = 500


class AltTextProvider(ABC):
    """A vendor that can describe an image."""

    name: str = ""

    def __init__(self, settings: Settings):
        self.settings = settings

    @abstractmethod
    def generate(self, encoded_image: str) -> str:
        """
        Generate alt text for a base64-encoded image.

        Raises:
            AltTextError: Any subclass, depending on where the call failed.
        """

    def _post(self, url: str, headers: Dict[str, str], body: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON body and decode the JSON reply.

        Returns:
            dict: The decoded response object.

        Raises:
            ProviderTimeoutError: The provider did not answer in time.
            TransportError: Connection failure, or a reply that is not a JSON object.
        """
        logging.info(f"[AI] Sending request to {self.name} ({url})")
        try:
            response = requests.post(url, headers=headers, json=body, timeout=self.settings.request_timeout)
        except requests.exceptions.Timeout as e:
            logging.error(f"[AI] {self.name} request timed out after {self.settings.request_timeout}s: {e}")
            raise ProviderTimeoutError(f"{self.name} request timed out") from e
        except requests.exceptions.RequestException as e:
            logging.error(f"[AI] Error making request to {self.name}: {e}")
            raise TransportError(f"{self.name} request failed: {e}") from e

        logging.info(
            f"[AI] {self.name} responded {response.status_code}: {response.text[:LOG_BODY_LIMIT]}"
        )

        try:
            payload = response.json()
        except ValueError as e:
            logging.error(f"[AI] Error unmarshaling {self.name} response JSON: {e}")
            raise TransportError(f"{self.name} returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise TransportError(f"{self.name} returned an unexpected response shape")
        return payload

    def _raise_for_error_envelope(self, payload: Dict[str, Any]) -> None:
        """Raise ProviderError when the reply carries {"error": {"message": ...}}."""
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            raise ProviderError(error["message"])

    def _first_text(self, items: Optional[List[Any]], field: str) -> str:
        if items is None:
            items = []
        if not isinstance(items, list):
            raise TransportError(f"{self.name} returned a non-list '{field}' field")
        if not items:
            logging.info(f"[AI] No response {field} from {self.name}")
            raise EmptyResponseError(f"No response from {self.name}")
        first = items[0]
        if not isinstance(first, dict):
            raise TransportError(f"{self.name} returned a malformed '{field}' entry")
        text = first.get("text")
        if not isinstance(text, str):
            logging.error(f"[AI] {self.name} '{field}' entry has no text: {first}")
            raise TransportError(f"{self.name} returned a '{field}' entry without text")
        return text


class OpenAIProvider(AltTextProvider):
    """
    OpenAI completions adapter.

    The image is only mentioned inline in the prompt text; the request does
    not use an image-capable message shape.
    """

    name = "OpenAI"

    def build_request(self, encoded_image: str) -> Dict[str, Any]:
        prompt = OPENAI_PROMPT.format(encoded_image=encoded_image)
        return {
            "model": self.settings.openai_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": MAX_TOKENS,
        }

    def generate(self, encoded_image: str) -> str:
        api_key = self.settings.openai_api_key
        if not api_key:
            logging.error("[AI] OpenAI API key is not configured")
            raise ConfigError("OpenAI API key is not set")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        payload = self._post(self.settings.openai_api_url, headers, self.build_request(encoded_image))

        self._raise_for_error_envelope(payload)
        return self._first_text(payload.get("choices"), "choices")


class AnthropicProvider(AltTextProvider):
    """Anthropic messages adapter. Sends the image as a base64 image block."""

    name = "Anthropic"

    def build_request(self, encoded_image: str) -> Dict[str, Any]:
        """
        Build the messages payload.

        Raises:
            DecodeError: If encoded_image is not valid base64.
        """
        try:
            image_data = base64.b64decode(encoded_image, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"failed to decode base64 image: {e}") from e

        return {
            "model": self.settings.anthropic_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": ANTHROPIC_PROMPT},
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": sniff_media_type(image_data),
                                "data": encoded_image,
                            },
                        },
                    ],
                }
            ],
            "max_tokens": MAX_TOKENS,
        }

    def generate(self, encoded_image: str) -> str:
        api_key = self.settings.anthropic_api_key
        if not api_key:
            logging.error("[AI] Anthropic API key is not configured")
            raise ConfigError("Anthropic API key is not set")

        body = self.build_request(encoded_image)
        headers = {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        payload = self._post(self.settings.anthropic_api_url, headers, body)

        # Only a structured error field counts; the word "error" in generated text does not.
        self._raise_for_error_envelope(payload)
        return self._first_text(payload.get("content"), "content")


PROVIDER_CLASSES = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


def build_provider(settings: Settings) -> AltTextProvider:
    """
    Instantiate the adapter selected in settings.

    Raises:
        ConfigError: If settings.provider names no known adapter.
    """
    try:
        provider_cls = PROVIDER_CLASSES[settings.provider]
    except KeyError:
        raise ConfigError(f"unknown provider: {settings.provider!r}") from None
    return provider_cls(settings)
