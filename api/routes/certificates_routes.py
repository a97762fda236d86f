"""Certificate render and preview endpoints."""

from fastapi import APIRouter, HTTPException, Request, Response

from core.config import get_settings
from core.ratelimit import RENDER_LIMIT, limiter
from rendering.errors import (
    CanvasTaintedError,
    CertificateRenderError,
    TemplateImageUnavailableError,
)
from schemas import PreviewRequest, PreviewResponse, RenderRequest
from services.certificates_service import (
    generate_certificate_preview,
    render_certificate_file,
)

router = APIRouter(prefix="/api/certificates", tags=["certificates"])


def _get_cache_control() -> str:
    """Get appropriate Cache-Control header value based on environment."""
    settings = get_settings()
    if settings.environment.lower() == "development":
        return "no-store"
    return "private, max-age=300"


@router.post(
    "/render",
    responses={
        200: {
            "content": {"application/pdf": {}, "image/jpeg": {}},
            "description": "Rendered certificate file",
        },
        500: {"description": "Headless browser failed to render the certificate"},
    },
)
@limiter.limit(RENDER_LIMIT)
async def render_certificate_endpoint(
    request: Request,
    body: RenderRequest,
) -> Response:
    """Render a certificate as a PDF or JPEG download."""
    try:
        rendered = await render_certificate_file(body)
    except CertificateRenderError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{rendered.filename}"',
            "Cache-Control": _get_cache_control(),
        },
    )


@router.post(
    "/preview",
    response_model=PreviewResponse,
    responses={
        422: {"description": "Template image unavailable or not exportable"},
    },
)
@limiter.limit(RENDER_LIMIT)
async def preview_certificate_endpoint(
    request: Request,
    body: PreviewRequest,
) -> PreviewResponse:
    """Render an inline PNG preview as a data URL."""
    try:
        return await generate_certificate_preview(body)
    except (CanvasTaintedError, TemplateImageUnavailableError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
