"""
Image media type sniffing.
Looks at the leading bytes of an upload and maps known signatures to a MIME type.
"""

from typing import Tuple

SNIFF_LENGTH = 512
DEFAULT_MEDIA_TYPE = "application/octet-stream"

# Formats the upload form accepts
ALLOWED_MEDIA_TYPES: Tuple[str, ...] = ("image/png", "image/jpeg", "image/gif", "image/webp")


def sniff_media_type(data: bytes) -> str:
    """
    Detect the media type of raw image bytes.

    Args:
        data (bytes): Raw file content. Only the first 512 bytes are inspected.

    Returns:
        str: The detected MIME type, or 'application/octet-stream' if unrecognized.
    """
    b = data[:SNIFF_LENGTH]

    # PNG
    if b.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    # JPEG
    if b.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    # GIF
    if b[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    # WEBP
    if len(b) >= 14 and b[:4] == b"RIFF" and b[8:14] == b"WEBPVP":
        return "image/webp"
    if b.startswith(b"BM"):
        return "image/bmp"
    if b.startswith(b"\x00\x00\x01\x00"):
        return "image/x-icon"

    return DEFAULT_MEDIA_TYPE


def is_allowed_media_type(media_type: str) -> bool:
    return media_type in ALLOWED_MEDIA_TYPES
