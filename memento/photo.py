"""
Photo input handling.

Handles:
1. Parsing embedded data URIs (malformed ones are terminal errors)
2. Fetching remote photo URLs and re-embedding them as data URIs
3. Background effects (blur) for cover placements
"""

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import httpx
from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from .api_models import PhotoInput
from .errors import MalformedPhotoError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPhoto:
    """A photo ready to be referenced from an overlay."""
    mime: str
    data: bytes
    data_url: str


def to_data_url(data: bytes, mime: str) -> str:
    """Encode bytes as a base64 data URI."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(value: str) -> Tuple[str, bytes]:
    """
    Parse a base64 data URI.

    Args:
        value: String like "data:image/png;base64,iVBOR..."

    Returns:
        Tuple of (mime type, decoded bytes)

    Raises:
        MalformedPhotoError: if the URI does not have exactly two comma-separated
            parts, lacks the data:/;base64 header, or the payload is not base64
    """
    parts = value.split(",")
    if len(parts) != 2:
        raise MalformedPhotoError(f"Photo data URI must have 2 comma-separated parts, got {len(parts)}")

    header, payload = parts
    if not header.startswith("data:") or not header.endswith(";base64"):
        raise MalformedPhotoError("Photo data URI must look like data:<mime>;base64,<payload>")

    mime = header[len("data:"):-len(";base64")] or "application/octet-stream"
    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPhotoError(f"Photo data URI payload is not valid base64: {e}") from e
    if not data:
        raise MalformedPhotoError("Photo data URI payload is empty")
    return mime, data


def _is_decodable(data: bytes) -> bool:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
        return True
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Photo bytes are not a readable image: {e}")
        return False


async def _fetch(url: str, client_factory: Callable[[], httpx.AsyncClient]) -> Optional[ResolvedPhoto]:
    try:
        async with client_factory() as client:
            response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch photo {url[:80]}: {e}")
        return None

    data = response.content
    mime = response.headers.get("content-type", "").split(";")[0].strip()
    if not mime.startswith("image/"):
        mime = "image/png" if data.startswith(b"\x89PNG") else "image/jpeg"
    return ResolvedPhoto(mime=mime, data=data, data_url=to_data_url(data, mime))


async def resolve_photo(
    photo: Optional[PhotoInput],
    client_factory: Callable[[], httpx.AsyncClient],
) -> Optional[ResolvedPhoto]:
    """
    Turn a request's photo reference into embeddable bytes.

    Args:
        photo: Photo reference from the render request
        client_factory: Creates the httpx client used for remote URLs

    Returns:
        ResolvedPhoto, or None when there is no usable photo

    Raises:
        MalformedPhotoError: for malformed data URIs
    """
    if photo is None:
        return None

    if photo.data_url:
        # dataUrl is always parsed, whatever it starts with
        mime, data = parse_data_url(photo.data_url)
        resolved = ResolvedPhoto(mime=mime, data=data, data_url=photo.data_url)
    elif not photo.url:
        return None
    elif photo.url.startswith("data:"):
        mime, data = parse_data_url(photo.url)
        resolved = ResolvedPhoto(mime=mime, data=data, data_url=photo.url)
    elif photo.url.startswith(("http://", "https://")):
        resolved = await _fetch(photo.url, client_factory)
    else:
        logger.warning(f"Unsupported photo url '{photo.url[:40]}', rendering without photo")
        return None

    if resolved is None or not _is_decodable(resolved.data):
        return None
    return resolved


def apply_background_effects(
    photo: ResolvedPhoto,
    size: Tuple[int, int],
    blur: Optional[float],
) -> ResolvedPhoto:
    """
    Blur a full-canvas photo before it is embedded.

    The photo is first cropped to fill ``size`` so the blur radius means the
    same thing at every output scale.

    Args:
        photo: Resolved photo
        size: Target canvas size in output pixels
        blur: Gaussian blur radius in output pixels

    Returns:
        New ResolvedPhoto holding a PNG, or the input when blur is unset
    """
    if not blur:
        return photo

    with Image.open(io.BytesIO(photo.data)) as img:
        fitted = ImageOps.fit(img.convert("RGB"), size, Image.Resampling.LANCZOS)
    blurred = fitted.filter(ImageFilter.GaussianBlur(radius=blur))

    buffer = io.BytesIO()
    blurred.save(buffer, format="PNG")
    data = buffer.getvalue()
    return ResolvedPhoto(mime="image/png", data=data, data_url=to_data_url(data, "image/png"))
