"""Certificate business logic for the renderer API.

Routes and the CLI go through this module instead of calling the rendering
package directly. It owns the pieces that are about *delivering* a
certificate rather than drawing it: media types and download filenames.
"""

import re
from dataclasses import dataclass

from core import get_logger
from rendering.certificates import (
    generate_preview_data_url as _generate_preview_data_url,
)
from rendering.certificates import (
    render_certificate as _render_certificate,
)
from schemas import (
    OutputFormat,
    PreviewRequest,
    PreviewResponse,
    RenderRequest,
)

logger = get_logger(__name__)

MEDIA_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "jpeg": "image/jpeg",
}

_FILE_EXTENSIONS: dict[str, str] = {
    "pdf": "pdf",
    "jpeg": "jpg",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class RenderedCertificate:
    """A rendered certificate file ready to be sent or written."""

    content: bytes
    media_type: str
    filename: str


def _filename_token(value: str | None, fallback: str) -> str:
    token = _UNSAFE_FILENAME_CHARS.sub("-", value or "").strip("-.")
    return token or fallback


def certificate_filename(
    certificate_number: str | None, output_format: OutputFormat
) -> str:
    """Download filename for a rendered file, e.g. ``certificate-TSP-2024-001.pdf``."""
    extension = _FILE_EXTENSIONS[output_format]
    token = _filename_token(certificate_number, "")
    if not token:
        return f"certificate.{extension}"
    return f"certificate-{token}.{extension}"


def preview_filename(certificate_number: str | None) -> str:
    """Download filename for a PNG preview, e.g. ``Certificate_TSP-2024-001.png``."""
    return f"Certificate_{_filename_token(certificate_number, 'TSP')}.png"


async def render_certificate_file(request: RenderRequest) -> RenderedCertificate:
    """Render the requested certificate file.

    Raises:
        CertificateRenderError: If the headless browser fails
    """
    data = request.certificate_data()
    content = await _render_certificate(data, request.template_url, request.format)
    filename = certificate_filename(data.certificate_number, request.format)
    logger.info(
        "certificate.file_ready",
        filename=filename,
        output_format=request.format,
        size_bytes=len(content),
    )
    return RenderedCertificate(
        content=content, media_type=MEDIA_TYPES[request.format], filename=filename
    )


async def generate_certificate_preview(request: PreviewRequest) -> PreviewResponse:
    """Render an inline PNG preview.

    Raises:
        CanvasTaintedError: If the template can't be exported from the canvas
        TemplateImageUnavailableError: If no template image could be loaded
    """
    data = request.certificate_data()
    data_url = await _generate_preview_data_url(data, request.template_url)
    filename = preview_filename(data.certificate_number)
    logger.info("certificate.preview_ready", filename=filename)
    return PreviewResponse(data_url=data_url, filename=filename)
