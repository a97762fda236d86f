"""Rendering module for certificate output.

This module handles all presentation/rendering logic:
- Layout descriptors and text placement
- HTML/CSS certificate template
- Template image acquisition and fallbacks
- Headless-browser PDF/JPEG export
- Canvas PNG previews
"""

from rendering.certificates import generate_preview_data_url, render_certificate
from rendering.errors import (
    CanvasTaintedError,
    CertificateRenderError,
    RenderError,
    TemplateImageUnavailableError,
)
from rendering.layout import DEFAULT_LAYOUT, CertificateLayout, compute_placements

__all__ = [
    "DEFAULT_LAYOUT",
    "CanvasTaintedError",
    "CertificateLayout",
    "CertificateRenderError",
    "RenderError",
    "TemplateImageUnavailableError",
    "compute_placements",
    "generate_preview_data_url",
    "render_certificate",
]
