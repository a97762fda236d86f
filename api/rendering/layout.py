"""Layout descriptor for certificate text overlays.

A layout maps each printable field to a position relative to the design
resolution plus the font, colour and transform used to draw it. Both render
backends consume the same placements, so the PDF/JPEG output and the PNG
preview put text in the same spots.

The built-in layout is tuned to the default certificate background. A
different template needs its own layout JSON (``LAYOUT_PATH``).
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from core.config import get_settings
from schemas import CertificateData

logger = logging.getLogger(__name__)

DESIGN_WIDTH = 1024
DESIGN_HEIGHT = 724

SCRIPT_FONT = "'Alex Brush', cursive"
SANS_FONT = "'Montserrat', sans-serif"


class FieldStyle(BaseModel):
    """Where and how one field is drawn."""

    model_config = ConfigDict(frozen=True)

    # Fractions of the layout width/height
    x: float = Field(ge=0, le=1)
    y: float = Field(ge=0, le=1)
    font_family: str = SANS_FONT
    font_size: int = Field(default=13, gt=0)
    font_weight: int = 400
    color: str = "#1a1a1a"
    uppercase: bool = False
    rotation: int = 0
    # "baseline": (x, y) is the horizontal centre of the text baseline.
    # "middle": (x, y) is the centre of the text box.
    anchor: Literal["baseline", "middle"] = "baseline"
    # TrueType file for the raster backend; system fonts are tried otherwise
    font_file: str | None = None
    # Whether the raster preview draws this field
    preview: bool = True


class CertificateLayout(BaseModel):
    """Styled fields, keyed by display value name.

    Output is always drawn at the design resolution; a layout only moves and
    styles text within it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: dict[str, FieldStyle]

    @property
    def width(self) -> int:
        return DESIGN_WIDTH

    @property
    def height(self) -> int:
        return DESIGN_HEIGHT


def _px(value: float, total: int) -> float:
    return value / total


DEFAULT_LAYOUT = CertificateLayout(
    fields={
        "recipient_name": FieldStyle(
            x=_px(512, DESIGN_WIDTH),
            y=_px(360, DESIGN_HEIGHT),
            font_family=SCRIPT_FONT,
            font_size=58,
            font_weight=700,
            color="#df2c2c",
        ),
        "professional": FieldStyle(
            x=_px(235, DESIGN_WIDTH),
            y=_px(540, DESIGN_HEIGHT),
            font_weight=700,
            uppercase=True,
        ),
        "certificate_number": FieldStyle(
            x=_px(512, DESIGN_WIDTH),
            y=_px(540, DESIGN_HEIGHT),
            font_weight=700,
            uppercase=True,
        ),
        "award_rera_number": FieldStyle(
            x=_px(789, DESIGN_WIDTH),
            y=_px(540, DESIGN_HEIGHT),
            font_weight=700,
            uppercase=True,
        ),
        "watermark": FieldStyle(
            x=_px(995, DESIGN_WIDTH),
            y=_px(362, DESIGN_HEIGHT),
            font_size=10,
            font_weight=700,
            color="#333333",
            rotation=90,
            anchor="middle",
            preview=False,
        ),
    }
)


@dataclass(frozen=True)
class TextPlacement:
    """A resolved piece of text at an absolute pixel position."""

    key: str
    text: str
    x: float
    y: float
    font_size: float
    style: FieldStyle


def compute_placements(
    data: CertificateData,
    layout: CertificateLayout = DEFAULT_LAYOUT,
    scale: float = 1.0,
) -> list[TextPlacement]:
    """Resolve every layout field against the recipient data.

    Fields are returned in layout order. Layout keys without a matching
    display value are skipped.
    """
    values = data.display_values()
    placements: list[TextPlacement] = []
    for key, style in layout.fields.items():
        text = values.get(key)
        if text is None:
            continue
        if style.uppercase:
            text = text.upper()
        placements.append(
            TextPlacement(
                key=key,
                text=text,
                x=round(style.x * layout.width * scale, 2),
                y=round(style.y * layout.height * scale, 2),
                font_size=style.font_size * scale,
                style=style,
            )
        )
    return placements


def load_layout(path: Path) -> CertificateLayout:
    """Load a layout descriptor from a JSON file."""
    return CertificateLayout.model_validate_json(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=1)
def get_layout() -> CertificateLayout:
    """Return the configured layout, falling back to the built-in one."""
    layout_file = get_settings().layout_file
    if layout_file is None:
        return DEFAULT_LAYOUT
    layout = load_layout(layout_file)
    logger.info(
        "layout.loaded",
        extra={"path": str(layout_file), "fields": sorted(layout.fields)},
    )
    return layout
