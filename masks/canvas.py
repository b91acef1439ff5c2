"""Two-tone drawing surface for inpainting masks.

A thin wrapper over a Pillow ``"L"`` image. Black (0) marks regions an
inpainting pass must preserve; white (255) marks regions it may edit.

Rectangles use canvas-API semantics: ``fill_rect(x, y, w, h)`` covers the
pixels ``x <= px < x + w`` and ``y <= py < y + h``, clipped to the canvas.
"""
import base64
import io
import math

from PIL import Image, ImageChops, ImageDraw

PRESERVE = 0
EDITABLE = 255
FEATHER = 128


class MaskCanvas:
    def __init__(self, width: int, height: int, fill: int = EDITABLE):
        if width <= 0 or height <= 0:
            raise ValueError(f"mask size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.image = Image.new("L", (width, height), fill)
        self._draw = ImageDraw.Draw(self.image)

    def fill_rect(self, x: float, y: float, width: float, height: float, value: int = PRESERVE) -> None:
        x0 = max(0, math.floor(x))
        y0 = max(0, math.floor(y))
        x1 = min(self.width, math.ceil(x + width))
        y1 = min(self.height, math.ceil(y + height))
        if x1 <= x0 or y1 <= y0:
            return
        # Pillow rectangles include the end coordinate
        self._draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=value)

    def fill_ellipse(self, cx: float, cy: float, rx: float, ry: float, value: int = PRESERVE) -> None:
        self._draw.ellipse([cx - rx, cy - ry, cx + rx, cy + ry], fill=value)

    def stroke_ellipse(
        self,
        cx: float,
        cy: float,
        rx: float,
        ry: float,
        line_width: int,
        value: int = FEATHER,
    ) -> None:
        """Outline centred on the ellipse path. Only lightens already-editable pixels."""
        half = line_width / 2
        ring = Image.new("L", (self.width, self.height), 0)
        ImageDraw.Draw(ring).ellipse(
            [cx - rx - half, cy - ry - half, cx + rx + half, cy + ry + half],
            outline=255,
            width=line_width,
        )
        shade = Image.new("L", (self.width, self.height), value)
        # Keep whichever is darker so preserve pixels stay fully black
        blended = Image.composite(shade, self.image, ring)
        self.image.paste(ImageChops.darker(blended, self.image))

    def to_image(self) -> Image.Image:
        return self.image.copy()


def is_preserved(mask: Image.Image, x: int, y: int) -> bool:
    return mask.getpixel((x, y)) == PRESERVE


def region_is(mask: Image.Image, box: tuple[int, int, int, int], value: int) -> bool:
    """True if every pixel in ``box`` (left, top, right, bottom; exclusive end) equals ``value``."""
    left, top, right, bottom = box
    left, top = max(0, left), max(0, top)
    right, bottom = min(mask.width, right), min(mask.height, bottom)
    if right <= left or bottom <= top:
        return True
    return mask.crop((left, top, right, bottom)).getextrema() == (value, value)


def mask_to_data_url(mask: Image.Image) -> str:
    """PNG data URL, the form the external inpainting service accepts."""
    buffer = io.BytesIO()
    mask.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
