"""Local compositing of a landscape page — no image model involved.

The character cut-out is centred in one 768×1024 half, the narration is set in
the other half with fixed typography. The returned text bounds are measured
from the rendered lines, so they can feed the scene inpainting mask directly.
"""
import logging
from pathlib import Path
from typing import NamedTuple

from PIL import Image, ImageDraw, ImageFont

from models.layout import Rect
from models.masks import CharacterPosition

logger = logging.getLogger(__name__)

PAGE_WIDTH = 1536
PAGE_HEIGHT = 1024
PANEL_WIDTH = PAGE_WIDTH // 2


class Typography(NamedTuple):
    font_size: int = 38
    line_height: float = 1.8
    padding: int = 70
    top_offset: int = 80
    color: str = "#000000"


class CompositionResult(NamedTuple):
    image: Image.Image
    text_bounds: Rect


def character_position_for_page(page_number: int) -> CharacterPosition:
    """Alternate sides by page number: even pages left, odd pages right."""
    return "left" if page_number % 2 == 0 else "right"


def panel_bounds(character_position: CharacterPosition) -> tuple[Rect, Rect]:
    """(character panel, narration panel) for a composited page."""
    left = Rect(x=0, y=0, width=PANEL_WIDTH, height=PAGE_HEIGHT)
    right = Rect(x=PANEL_WIDTH, y=0, width=PANEL_WIDTH, height=PAGE_HEIGHT)
    return (left, right) if character_position == "left" else (right, left)


def compose_landscape_page(
    character_image: Image.Image,
    narration: str,
    character_position: CharacterPosition,
    font_path: Path | None = None,
    typography: Typography = Typography(),
) -> CompositionResult:
    page = Image.new("RGB", (PAGE_WIDTH, PAGE_HEIGHT), "white")
    char_panel, text_panel = panel_bounds(character_position)

    # Fit the character into its panel, keeping aspect ratio
    scale = min(char_panel.width / character_image.width, char_panel.height / character_image.height)
    size = (max(1, round(character_image.width * scale)), max(1, round(character_image.height * scale)))
    art = character_image.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
    offset = (
        int(char_panel.x + (char_panel.width - size[0]) / 2),
        int(char_panel.y + (char_panel.height - size[1]) / 2),
    )
    page.paste(art, offset, art)

    bounds = _render_narration(page, narration, text_panel, _load_font(font_path, typography.font_size), typography)
    return CompositionResult(image=page, text_bounds=bounds)


def _load_font(font_path: Path | None, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    if font_path is not None:
        return ImageFont.truetype(str(font_path), size)
    return ImageFont.load_default(size=size)


def _render_narration(
    page: Image.Image,
    text: str,
    panel: Rect,
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
    typography: Typography,
) -> Rect:
    text_x = panel.x + typography.padding
    text_y = panel.y + typography.padding + typography.top_offset
    text_width = panel.width - 2 * typography.padding
    text_height = panel.height - 2 * typography.padding - typography.top_offset

    if not text or not text.strip():
        logger.warning("Empty narration — nothing to compose")
        return Rect(x=text_x, y=text_y, width=text_width, height=0)

    draw = ImageDraw.Draw(page)
    lines = _wrap_to_width(draw, text, font, text_width)
    spacing = typography.font_size * typography.line_height

    current_y = text_y
    last_y = text_y
    for index, line in enumerate(lines):
        if current_y + typography.font_size > text_y + text_height:
            logger.warning("Narration overflows its panel at line %d of %d", index + 1, len(lines))
            break
        draw.text((text_x, current_y), line, font=font, fill=typography.color)
        last_y = current_y
        current_y += spacing

    return Rect(
        x=text_x,
        y=text_y,
        width=text_width,
        height=(last_y - text_y) + typography.font_size,
    )


def _wrap_to_width(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if draw.textlength(candidate, font=font) > max_width and current:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines
