"""
Error taxonomy for alt text generation.

Validation and decode errors are client faults and are shown to the caller.
Everything else is logged server-side and reported as a generic failure.
"""


class AltTextError(Exception):
    """Base class for every failure raised while generating alt text."""


class ConfigError(AltTextError):
    """Missing credential, unknown provider, or unreadable env file."""


class ValidationError(AltTextError):
    """The upload itself is unacceptable (bad content type, missing file, wrong format)."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class TransportError(AltTextError):
    """Network, marshaling or unmarshaling failure talking to a provider."""


class ProviderTimeoutError(TransportError):
    """The provider did not answer within the configured timeout."""


class ProviderError(AltTextError):
    """The provider answered with a recognizable error envelope."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyResponseError(AltTextError):
    """The provider answered without any usable content."""


class DecodeError(AltTextError):
    """The encoded image is not valid base64."""
