"""
Image source resolution.

Turns the caller's image reference into an ImagePayload:
- data URLs are decoded in place
- anything else is treated as a URL and fetched with a bounded timeout

Fetched bytes are sniffed with Pillow to find the image format; a payload
that is neither recognisable by Pillow nor served as ``image/*`` is
rejected as undecodable.
"""

import base64
import binascii
import io
import logging
import re
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError

from wildlife_id.core.exceptions import ImageSourceError
from wildlife_id.ml.base import ImagePayload

logger = logging.getLogger(__name__)


DATA_URL_PATTERN = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


def is_data_url(image: str) -> bool:
    return image.startswith("data:")


def decode_data_url(image: str) -> ImagePayload:
    """
    Decode a ``data:<mime>;base64,<payload>`` URL.

    Payloads that are not strict base64 are passed on as their raw text so
    the local heuristics still see them.

    Raises:
        ImageSourceError: If the string is not a base64 data URL
    """
    match = DATA_URL_PATTERN.match(image.strip())
    if not match:
        raise ImageSourceError("Invalid data URL format")

    mime_type, payload = match.group(1), match.group(2)
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("Data URL payload is not strict base64, passing raw text")
        content = payload.encode("utf-8")

    if not content:
        raise ImageSourceError("Data URL has an empty payload")

    return ImagePayload(content=content, text=image, mime_type=mime_type, source="data_url")


def sniff_mime_type(content: bytes) -> Optional[str]:
    """MIME type of an encoded image, or None if Pillow cannot identify it."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return Image.MIME.get(img.format) if img.format else None
    except (UnidentifiedImageError, OSError):
        return None


async def fetch_image(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 10.0,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> ImagePayload:
    """
    Download an image and wrap it as an ImagePayload.

    Args:
        url: Image URL
        client: Shared async HTTP client (a short-lived one is used if omitted)
        timeout: Request timeout in seconds
        max_bytes: Largest accepted payload

    Raises:
        ImageSourceError: On network failure, HTTP error, oversize or
            undecodable content
    """
    try:
        if client is not None:
            response = await client.get(url, timeout=timeout, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await own_client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise ImageSourceError(f"Failed to fetch image from {url}: {e}") from e

    content = response.content
    if not content:
        raise ImageSourceError(f"Empty image response from {url}")
    if len(content) > max_bytes:
        raise ImageSourceError(f"Image exceeds {max_bytes // (1024 * 1024)}MB limit")

    mime_type = sniff_mime_type(content)
    if mime_type is None:
        header_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not header_type.startswith("image/"):
            raise ImageSourceError(f"Could not decode image from {url}")
        mime_type = header_type

    encoded = base64.b64encode(content).decode("ascii")
    logger.info(f"Image fetched successfully ({len(content)} bytes, {mime_type})")

    return ImagePayload(
        content=content,
        text=f"data:{mime_type};base64,{encoded}",
        mime_type=mime_type,
        source="url",
    )


async def resolve_image(
    image: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 10.0,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> ImagePayload:
    """
    Resolve a data URL or image URL into an ImagePayload.

    Raises:
        ImageSourceError: If the image cannot be obtained
    """
    if not image or not image.strip():
        raise ImageSourceError("No image provided")

    if is_data_url(image):
        logger.info("Using image directly from data URL")
        return decode_data_url(image)

    logger.info(f"Fetching image from URL: {image}")
    return await fetch_image(image.strip(), client=client, timeout=timeout, max_bytes=max_bytes)
