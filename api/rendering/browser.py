"""Headless-browser backend: HTML page to PDF or JPEG bytes.

Every call launches its own Chromium process and closes it before
returning, whether the export succeeded or not. Nothing is shared between
calls, so concurrent renders are independent.
"""

import logging
from collections.abc import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from rendering.errors import CertificateRenderError
from schemas import OutputFormat

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: tuple[OutputFormat, ...] = ("pdf", "jpeg")


async def render_html(
    html: str,
    output_format: OutputFormat,
    *,
    width: int,
    height: int,
    device_scale_factor: float = 2.0,
    jpeg_quality: int = 90,
    launch_args: Sequence[str] = (),
) -> bytes:
    """Render an HTML document with headless Chromium.

    Args:
        html: Complete HTML document
        output_format: "pdf" for a single vector page of width x height
            pixels, "jpeg" for a screenshot of the viewport
        width: Viewport/page width in CSS pixels
        height: Viewport/page height in CSS pixels
        device_scale_factor: Screenshot pixel density (JPEG is
            width*factor x height*factor)
        jpeg_quality: JPEG quality, 1-100
        launch_args: Extra Chromium command-line flags

    Returns:
        PDF or JPEG bytes

    Raises:
        ValueError: If output_format is not supported
        CertificateRenderError: If the browser fails to launch, load or export
    """
    if output_format not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Unsupported certificate format {output_format!r}. "
            f"Use one of: {', '.join(SUPPORTED_FORMATS)}"
        )

    try:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=True, args=list(launch_args)
            )
            try:
                page = await browser.new_page(
                    viewport={"width": width, "height": height},
                    device_scale_factor=device_scale_factor,
                )
                await page.set_content(html, wait_until="networkidle")

                if output_format == "pdf":
                    return await page.pdf(
                        width=f"{width}px",
                        height=f"{height}px",
                        print_background=True,
                        prefer_css_page_size=True,
                    )
                return await page.screenshot(
                    type="jpeg", quality=jpeg_quality, full_page=False
                )
            finally:
                await browser.close()
    except PlaywrightError as e:
        logger.error(
            "browser.render_failed",
            extra={"output_format": output_format, "error": str(e)},
        )
        raise CertificateRenderError(
            f"Certificate rendering failed in the headless browser: {e}"
        ) from e
