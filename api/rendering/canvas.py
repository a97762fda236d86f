"""Raster canvas backend for PNG certificate previews (Pillow).

The canvas tracks whether any cross-origin pixels were drawn onto it. A
tainted canvas refuses to export, so a preview never silently ships a
template the app had no permission to read.
"""

import io
import logging
from functools import lru_cache

from PIL import Image, ImageDraw, ImageFont

from rendering.errors import CanvasTaintedError
from rendering.images import to_data_url
from rendering.layout import TextPlacement

logger = logging.getLogger(__name__)

_REGULAR_FONTS = [
    "Montserrat-Regular.ttf",
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
]
_BOLD_FONTS = [
    "Montserrat-Bold.ttf",
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
]

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


@lru_cache(maxsize=64)
def load_font(font_file: str | None, size: int, bold: bool = False) -> FontType:
    """Load a TrueType font, trying system fonts before Pillow's default."""
    candidates = [font_file] if font_file else []
    candidates += _BOLD_FONTS if bold else _REGULAR_FONTS
    for path in candidates:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    logger.warning(
        "canvas.font_fallback", extra={"font_file": font_file, "size": size}
    )
    return ImageFont.load_default(size=size)


class CertificateCanvas:
    """Fixed-size drawing surface for one certificate preview."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.tainted = False
        self._taint_source: str | None = None
        self._image = Image.new("RGB", (width, height), "white")
        self._draw = ImageDraw.Draw(self._image)

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def draw_background(
        self,
        image: Image.Image,
        *,
        tainted: bool = False,
        source: str | None = None,
    ) -> None:
        """Stretch an image over the whole canvas, ignoring its aspect ratio."""
        stretched = image.convert("RGB").resize(
            (self.width, self.height), Image.Resampling.LANCZOS
        )
        self._image.paste(stretched, (0, 0))
        if tainted:
            self.tainted = True
            self._taint_source = source

    def fill_text(self, placement: TextPlacement) -> None:
        style = placement.style
        font = load_font(
            style.font_file, round(placement.font_size), style.font_weight >= 600
        )
        if style.rotation:
            self._fill_rotated_text(placement, font)
            return
        anchor = "mm" if style.anchor == "middle" else "ms"
        self._draw.text(
            (placement.x, placement.y),
            placement.text,
            font=font,
            fill=style.color,
            anchor=anchor,
        )

    def _fill_rotated_text(self, placement: TextPlacement, font: FontType) -> None:
        style = placement.style
        left, top, right, bottom = self._draw.textbbox(
            (0, 0), placement.text, font=font
        )
        layer = Image.new(
            "RGBA", (max(right - left, 1), max(bottom - top, 1)), (0, 0, 0, 0)
        )
        ImageDraw.Draw(layer).text(
            (-left, -top), placement.text, font=font, fill=style.color
        )
        # Pillow rotates counter-clockwise; layout rotation is clockwise like CSS
        rotated = layer.rotate(-style.rotation, expand=True)
        if style.anchor == "middle":
            y = placement.y - rotated.height / 2
        else:
            y = placement.y - rotated.height
        position = (round(placement.x - rotated.width / 2), round(y))
        self._image.paste(rotated, position, rotated)

    def to_png(self) -> bytes:
        """Encode the canvas as PNG.

        Raises:
            CanvasTaintedError: If a cross-origin image was drawn without
                CORS permission
        """
        if self.tainted:
            raise CanvasTaintedError(self._taint_source)
        buffer = io.BytesIO()
        self._image.save(buffer, format="PNG")
        return buffer.getvalue()

    def to_data_url(self) -> str:
        return to_data_url(self.to_png(), "image/png")
