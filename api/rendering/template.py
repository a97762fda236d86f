"""HTML/CSS certificate template for the headless-browser render path."""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from rendering.layout import DEFAULT_LAYOUT, CertificateLayout, compute_placements
from schemas import CertificateData

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
_TEMPLATE_NAME = "certificate.html"


@dataclass(frozen=True)
class _HtmlField:
    key: str
    text: str
    css: str


@lru_cache(maxsize=1)
def _get_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _field_css(x: float, y: float, font_size: float, style) -> str:
    if style.anchor == "middle":
        transform = "translate(-50%, -50%)"
    else:
        transform = "translate(-50%, -100%)"
    if style.rotation:
        transform += f" rotate({style.rotation}deg)"
    return (
        f"left: {x:g}px; top: {y:g}px; transform: {transform}; "
        f"font-family: {style.font_family}; font-size: {font_size:g}px; "
        f"font-weight: {style.font_weight}; color: {style.color};"
    )


def build_certificate_html(
    data: CertificateData,
    background_url: str | None,
    *,
    layout: CertificateLayout = DEFAULT_LAYOUT,
    font_css_url: str = "",
) -> str:
    """Render the certificate page with recipient text over the background.

    Args:
        data: Recipient fields; missing values render as placeholders
        background_url: ``data:`` URL of the background, or None/"" for a
            plain white page
        layout: Field positions and styles
        font_css_url: Stylesheet to ``@import`` for web fonts, "" to skip

    Returns:
        A complete HTML document sized to the layout's design resolution
    """
    fields = [
        _HtmlField(
            key=placement.key,
            text=placement.text,
            css=_field_css(
                placement.x, placement.y, placement.font_size, placement.style
            ),
        )
        for placement in compute_placements(data, layout)
    ]
    template = _get_environment().get_template(_TEMPLATE_NAME)
    return template.render(
        width=layout.width,
        height=layout.height,
        background_url=background_url or "",
        font_css_url=font_css_url,
        fields=fields,
    )
