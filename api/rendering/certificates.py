"""Certificate rendering - PDF/JPEG via headless browser, PNG previews via canvas.

Both entry points take the same recipient data and optional template URL
and share one layout, so the downloaded file and the inline preview put
text in the same places:

- ``render_certificate``: template -> data URL -> HTML page -> Chromium ->
  PDF or JPEG bytes. Template problems fall back to the default background;
  browser problems raise ``CertificateRenderError``.
- ``generate_preview_data_url``: template -> load strategies -> Pillow
  canvas -> ``data:image/png;base64,...``. A tainted canvas raises
  ``CanvasTaintedError``.
"""

import asyncio
import logging
from collections.abc import Sequence

import httpx

from core.config import get_settings
from core.http_client import get_http_client
from rendering.browser import render_html
from rendering.canvas import CertificateCanvas
from rendering.images import (
    CorsFetchStrategy,
    DefaultImageStrategy,
    DirectLoadStrategy,
    ImageLoadResult,
    ImageLoadStrategy,
    TemplateProxyStrategy,
    fetch_template_data_url,
    load_default_data_url,
    load_template_image,
)
from rendering.layout import CertificateLayout, compute_placements, get_layout
from rendering.template import build_certificate_html
from schemas import CertificateData, OutputFormat

logger = logging.getLogger(__name__)


async def resolve_background_data_url(
    template_url: str | None, client: httpx.AsyncClient | None = None
) -> str | None:
    """Template as a data URL, else the default background, else None."""
    settings = get_settings()
    image_data_url = None
    if template_url:
        client = client or await get_http_client()
        image_data_url = await fetch_template_data_url(template_url, client)
    if not image_data_url:
        image_data_url = load_default_data_url(settings.default_template_file)
    if not image_data_url:
        logger.warning("certificate.background_missing")
    return image_data_url


async def render_certificate(
    data: CertificateData,
    template_url: str | None = None,
    output_format: OutputFormat = "pdf",
    *,
    layout: CertificateLayout | None = None,
) -> bytes:
    """Render a certificate as PDF or JPEG bytes.

    Args:
        data: Recipient fields
        template_url: Optional remote background image
        output_format: "pdf" or "jpeg"
        layout: Overrides the configured layout

    Returns:
        PDF bytes (one 1024x724px page) or JPEG bytes (1024x724 times the
        device scale factor)

    Raises:
        ValueError: If output_format is not supported
        CertificateRenderError: If the headless browser fails
    """
    settings = get_settings()
    layout = layout or get_layout()

    background_url = await resolve_background_data_url(template_url)
    html = build_certificate_html(
        data,
        background_url,
        layout=layout,
        font_css_url=settings.font_css_url,
    )

    content = await render_html(
        html,
        output_format,
        width=layout.width,
        height=layout.height,
        device_scale_factor=settings.device_scale_factor,
        jpeg_quality=settings.jpeg_quality,
        launch_args=settings.browser_launch_args,
    )

    logger.info(
        "certificate.rendered",
        extra={
            "output_format": output_format,
            "certificate_number": data.certificate_number,
            "custom_template": bool(template_url),
            "size_bytes": len(content),
        },
    )
    return content


def build_preview_strategies(
    client: httpx.AsyncClient, layout: CertificateLayout
) -> list[ImageLoadStrategy]:
    """Default strategy chain: proxy, CORS fetch, direct load, default image."""
    settings = get_settings()
    timeout = settings.image_fetch_timeout
    return [
        TemplateProxyStrategy(client, settings.template_proxy_url, timeout),
        CorsFetchStrategy(client, settings.frontend_url, timeout),
        DirectLoadStrategy(client, settings.frontend_url, timeout),
        DefaultImageStrategy(
            settings.default_template_file, layout.width, layout.height
        ),
    ]


def draw_certificate(
    data: CertificateData, background: ImageLoadResult, layout: CertificateLayout
) -> str:
    """Compose the preview on a canvas and export it as a PNG data URL."""
    canvas = CertificateCanvas(layout.width, layout.height)
    canvas.draw_background(
        background.image, tainted=background.tainted, source=background.source
    )
    for placement in compute_placements(data, layout):
        if placement.style.preview:
            canvas.fill_text(placement)
    return canvas.to_data_url()


async def generate_preview_data_url(
    data: CertificateData,
    template_url: str | None = None,
    *,
    layout: CertificateLayout | None = None,
    strategies: Sequence[ImageLoadStrategy] | None = None,
) -> str:
    """Render a PNG preview of a certificate as a data URL.

    Raises:
        TemplateImageUnavailableError: If no strategy produced an image
        CanvasTaintedError: If the chosen image can't be exported
    """
    layout = layout or get_layout()
    if strategies is None:
        strategies = build_preview_strategies(await get_http_client(), layout)

    background = await load_template_image(template_url, strategies)
    data_url = await asyncio.to_thread(draw_certificate, data, background, layout)

    logger.info(
        "certificate.preview_rendered",
        extra={
            "strategy": background.strategy,
            "certificate_number": data.certificate_number,
        },
    )
    return data_url
