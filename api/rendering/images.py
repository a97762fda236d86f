"""Template image acquisition for both certificate render paths.

Server path (PDF/JPEG): the remote template is fetched once and inlined as a
``data:`` URL; any failure falls back to the bundled default image, and a
missing default degrades to a plain background.

Preview path (PNG): an ordered list of load strategies is tried until one
yields a decoded image:

1. ``proxy``   - same-origin image proxy, always exportable
2. ``cors``    - direct fetch, accepted only with CORS clearance
3. ``direct``  - plain load; cross-origin images come back *tainted*
4. ``default`` - bundled default image (blank background if missing)

Each strategy exposes ``can_handle`` so the chain skips strategies that
don't apply (no proxy configured, inline ``data:`` template, ...). Every
strategy returns an ``ImageLoadResult`` instead of raising, which keeps the
chain a flat loop.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import mimetypes
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar
from urllib.parse import urlsplit

import httpx
from PIL import Image, UnidentifiedImageError

from rendering.errors import TemplateImageUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"

_MIME_TYPE_RE = re.compile(r"^[a-z0-9][a-z0-9!#$&^_.+-]*/[a-z0-9][a-z0-9!#$&^_.+-]*$")
_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[^;,]*)(?P<base64>;base64)?,(?P<payload>.*)$", re.DOTALL
)


# =============================================================================
# Data URL helpers
# =============================================================================


def clean_mime_type(content_type: str | None, default: str = DEFAULT_MIME_TYPE) -> str:
    """Reduce a Content-Type header to a bare ``type/subtype`` token."""
    if not content_type:
        return default
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime if _MIME_TYPE_RE.match(mime) else default


def to_data_url(content: bytes, mime_type: str) -> str:
    """Encode binary content as a base64 data URL."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_url(data_url: str) -> bytes:
    """Return the payload of a ``data:`` URL.

    Raises:
        ValueError: If the string is not a well-formed data URL
    """
    match = _DATA_URL_RE.match(data_url)
    if not match:
        raise ValueError("Not a data URL")
    payload = match.group("payload")
    if match.group("base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    return payload.encode("utf-8")


def is_http_url(url: str | None) -> bool:
    if not url:
        return False
    try:
        return urlsplit(url).scheme in ("http", "https")
    except ValueError:
        return False


def url_origin(url: str) -> str:
    """``scheme://host[:port]`` of a URL, lowercased.

    Malformed URLs (an unclosed IPv6 bracket, say) have no origin and
    yield an empty string.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    return f"{parts.scheme}://{parts.netloc}".lower()


# =============================================================================
# Server path
# =============================================================================


async def fetch_template_data_url(url: str, client: httpx.AsyncClient) -> str | None:
    """Download a template image and inline it, or None on any failure."""
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning(
            "template_image.fetch_failed",
            extra={"url": url, "error": str(e) or type(e).__name__},
        )
        return None

    if response.status_code != 200:
        logger.warning(
            "template_image.fetch_failed",
            extra={"url": url, "status_code": response.status_code},
        )
        return None

    if not response.content:
        logger.warning("template_image.empty", extra={"url": url})
        return None

    mime_type = clean_mime_type(response.headers.get("content-type"))
    logger.info("template_image.fetched", extra={"url": url, "mime_type": mime_type})
    return to_data_url(response.content, mime_type)


def load_default_data_url(path: Path) -> str | None:
    """Inline the bundled default background, or None if it can't be read."""
    try:
        content = path.read_bytes()
    except OSError as e:
        logger.warning(
            "template_image.default_missing",
            extra={"path": str(path), "error": str(e)},
        )
        return None

    mime_type, _ = mimetypes.guess_type(path.name)
    return to_data_url(content, mime_type or DEFAULT_MIME_TYPE)


# =============================================================================
# Preview path
# =============================================================================


@dataclass(frozen=True)
class ImageLoadResult:
    """Outcome of one load strategy."""

    strategy: str
    image: Image.Image | None = None
    # Cross-origin pixels without CORS clearance; the canvas can't export them
    tainted: bool = False
    source: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.image is not None


def decode_image(content: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded RGB image.

    Raises:
        ValueError: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Undecodable image: {e}") from e


def _cors_allows(response: httpx.Response, app_origin: str) -> bool:
    allowed = response.headers.get("access-control-allow-origin", "").strip()
    return allowed == "*" or allowed.lower() == app_origin.lower()


class ImageLoadStrategy(ABC):
    """One way of turning a template reference into a decoded image."""

    name: ClassVar[str]

    @abstractmethod
    def can_handle(self, url: str | None) -> bool:
        """Whether this strategy applies to the given template reference."""

    @abstractmethod
    async def load(self, url: str | None) -> ImageLoadResult:
        """Load the image. Never raises for load/decode failures."""

    def _failed(self, url: str | None, error: str) -> ImageLoadResult:
        return ImageLoadResult(strategy=self.name, source=url, error=error)


class TemplateProxyStrategy(ImageLoadStrategy):
    """Fetch through the app's own image proxy (same origin, never tainted)."""

    name = "proxy"

    def __init__(self, client: httpx.AsyncClient, proxy_url: str, timeout: float):
        self.client = client
        self.proxy_url = proxy_url
        self.timeout = timeout

    def can_handle(self, url: str | None) -> bool:
        return bool(self.proxy_url) and is_http_url(url)

    async def load(self, url: str | None) -> ImageLoadResult:
        try:
            response = await self.client.get(
                self.proxy_url, params={"url": url}, timeout=self.timeout
            )
            response.raise_for_status()
            image = decode_image(response.content)
        except (httpx.HTTPError, ValueError) as e:
            return self._failed(url, str(e) or type(e).__name__)
        return ImageLoadResult(strategy=self.name, image=image, source=url)


class CorsFetchStrategy(ImageLoadStrategy):
    """Fetch the template directly, keeping it only with CORS clearance."""

    name = "cors"

    def __init__(self, client: httpx.AsyncClient, app_origin: str, timeout: float):
        self.client = client
        self.app_origin = app_origin
        self.timeout = timeout

    def can_handle(self, url: str | None) -> bool:
        return is_http_url(url)

    async def load(self, url: str | None) -> ImageLoadResult:
        try:
            response = await self.client.get(
                url, headers={"Origin": self.app_origin}, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            return self._failed(url, str(e) or type(e).__name__)

        same_origin = url_origin(url) == url_origin(self.app_origin)
        if not same_origin and not _cors_allows(response, self.app_origin):
            return self._failed(url, "response does not allow the app origin (CORS)")

        try:
            image = decode_image(response.content)
        except ValueError as e:
            return self._failed(url, str(e))
        return ImageLoadResult(strategy=self.name, image=image, source=url)


class DirectLoadStrategy(ImageLoadStrategy):
    """Load the template the way an ``<img>`` element would.

    Inline ``data:`` templates are always clean. Remote images load
    regardless of CORS, but cross-origin ones without clearance taint the
    canvas they are drawn onto.
    """

    name = "direct"

    def __init__(self, client: httpx.AsyncClient, app_origin: str, timeout: float):
        self.client = client
        self.app_origin = app_origin
        self.timeout = timeout

    def can_handle(self, url: str | None) -> bool:
        return bool(url) and (url.startswith("data:") or is_http_url(url))

    async def load(self, url: str | None) -> ImageLoadResult:
        if url.startswith("data:"):
            try:
                image = decode_image(decode_data_url(url))
            except ValueError as e:
                return self._failed("data: URL", str(e))
            return ImageLoadResult(strategy=self.name, image=image, source="data: URL")

        try:
            response = await self.client.get(url, timeout=self.timeout)
            response.raise_for_status()
            image = decode_image(response.content)
        except (httpx.HTTPError, ValueError) as e:
            return self._failed(url, str(e) or type(e).__name__)

        same_origin = url_origin(url) == url_origin(self.app_origin)
        tainted = not same_origin and not _cors_allows(response, self.app_origin)
        return ImageLoadResult(
            strategy=self.name, image=image, tainted=tainted, source=url
        )


class DefaultImageStrategy(ImageLoadStrategy):
    """Bundled default background; a blank page when the asset is missing."""

    name = "default"

    def __init__(self, path: Path, width: int, height: int):
        self.path = path
        self.width = width
        self.height = height

    def can_handle(self, url: str | None) -> bool:
        return True

    async def load(self, url: str | None) -> ImageLoadResult:
        try:
            image = decode_image(self.path.read_bytes())
        except (OSError, ValueError) as e:
            logger.warning(
                "template_image.default_missing",
                extra={"path": str(self.path), "error": str(e)},
            )
            image = Image.new("RGB", (self.width, self.height), "white")
        return ImageLoadResult(strategy=self.name, image=image, source=str(self.path))


async def load_template_image(
    url: str | None, strategies: Sequence[ImageLoadStrategy]
) -> ImageLoadResult:
    """Run the strategies in order and return the first decoded image.

    Raises:
        TemplateImageUnavailableError: If every applicable strategy failed
    """
    failures: list[str] = []
    for strategy in strategies:
        if not strategy.can_handle(url):
            continue
        result = await strategy.load(url)
        if result.ok:
            logger.info(
                "template_image.loaded",
                extra={"strategy": result.strategy, "tainted": result.tainted},
            )
            return result
        logger.info(
            "template_image.strategy_failed",
            extra={"strategy": strategy.name, "error": result.error},
        )
        failures.append(f"{strategy.name}: {result.error}")

    detail = "; ".join(failures) if failures else "no applicable strategy"
    raise TemplateImageUnavailableError(
        f"Template image could not be loaded ({detail})"
    )
