"""Scene inpainting masks for composited landscape pages (1536×1024 by default).

A composited page has the character in one 768px half and the narration in the
other. Scene-detail passes may only touch thin bands around them, so the mask
paints black (preserve) over:

  1. the narration box grown by 80px on every side,
  2. the character half inset by 60px, leaving a thin border strip editable,
  3. a 40px gutter centred on the spine.

Everything else stays white (editable): top and bottom bands, side margins and
the border strips. The stricter scene-detail variant starts fully preserved and
opens only the given zones; it is a separate generator.
"""
import logging
import math
from typing import NamedTuple

from PIL import Image

from layout.text_fit import wrap_words
from masks.canvas import EDITABLE, PRESERVE, MaskCanvas, region_is
from models.layout import Rect
from models.masks import CharacterPosition, InpaintingZones, WordZone

logger = logging.getLogger(__name__)

SPREAD_WIDTH = 1536
SPREAD_HEIGHT = 1024
TEXT_PROTECT_MARGIN = 80
CHARACTER_PROTECT_MARGIN = 60
GUTTER_WIDTH = 40

# Narration typography of the composited page
NARRATION_FONT_SIZE = 38
NARRATION_LINE_HEIGHT = 1.8
NARRATION_PADDING = 70
NARRATION_TOP_OFFSET = 80


class MaskCheck(NamedTuple):
    valid: bool
    errors: list[str]


def narration_protect_rect(narration_bounds: Rect) -> Rect:
    return narration_bounds.expanded(TEXT_PROTECT_MARGIN)


def character_protect_rect(
    character_position: CharacterPosition,
    width: int = SPREAD_WIDTH,
    height: int = SPREAD_HEIGHT,
) -> Rect:
    panel_width = width // 2
    panel_x = 0 if character_position == "left" else panel_width
    return Rect(
        x=panel_x + CHARACTER_PROTECT_MARGIN,
        y=CHARACTER_PROTECT_MARGIN,
        width=panel_width - 2 * CHARACTER_PROTECT_MARGIN,
        height=height - 2 * CHARACTER_PROTECT_MARGIN,
    )


def gutter_rect(width: int = SPREAD_WIDTH, height: int = SPREAD_HEIGHT) -> Rect:
    return Rect(x=width / 2 - GUTTER_WIDTH / 2, y=0, width=GUTTER_WIDTH, height=height)


def preserve_rects(
    character_position: CharacterPosition,
    narration_bounds: Rect,
    width: int = SPREAD_WIDTH,
    height: int = SPREAD_HEIGHT,
) -> list[Rect]:
    """Every region a scene inpainting mask must keep black, unclipped."""
    return [
        narration_protect_rect(narration_bounds),
        character_protect_rect(character_position, width, height),
        gutter_rect(width, height),
    ]


def generate_inpainting_mask(
    character_position: CharacterPosition,
    narration_bounds: Rect,
    zones: InpaintingZones | None = None,
    width: int = SPREAD_WIDTH,
    height: int = SPREAD_HEIGHT,
) -> Image.Image:
    """Mask protecting narration text and character art for a scene-detail pass.

    ``zones`` overrides the default placement zones the caller targets with
    new detail. The mask always starts editable, so zones never narrow it;
    use :func:`generate_scene_detail_mask` to open only the zones.
    """
    zones = zones or default_inpainting_zones()
    canvas = MaskCanvas(width, height, fill=EDITABLE)
    _paint_preserves(canvas, character_position, narration_bounds)
    logger.debug(
        "Inpainting mask %dx%d: character=%s, text protect=%s, zones=%d corner(s)",
        width, height, character_position, narration_protect_rect(narration_bounds), len(zones.corners),
    )
    return canvas.to_image()


def generate_scene_detail_mask(
    character_position: CharacterPosition,
    narration_bounds: Rect,
    zones: InpaintingZones | None = None,
    word_zones: list[Rect] | None = None,
    width: int = SPREAD_WIDTH,
    height: int = SPREAD_HEIGHT,
) -> Image.Image:
    """Start fully preserved, open the given zones, then re-apply all preserves.

    Preserve regions always win over zones, so a zone overlapping the caption
    or the character stays black where they meet.
    """
    zones = zones or InpaintingZones()
    canvas = MaskCanvas(width, height, fill=PRESERVE)

    canvas.fill_rect(0, zones.top_band.y, width, zones.top_band.height, EDITABLE)
    canvas.fill_rect(0, zones.bottom_band.y, width, zones.bottom_band.height, EDITABLE)
    canvas.fill_rect(0, 0, zones.margins.left, height, EDITABLE)
    canvas.fill_rect(width - zones.margins.right, 0, zones.margins.right, height, EDITABLE)
    for zone in [*zones.corners, *(word_zones or [])]:
        canvas.fill_rect(zone.x, zone.y, zone.width, zone.height, EDITABLE)

    _paint_preserves(canvas, character_position, narration_bounds)
    return canvas.to_image()


def _paint_preserves(canvas: MaskCanvas, character_position: CharacterPosition, narration_bounds: Rect) -> None:
    for rect in preserve_rects(character_position, narration_bounds, canvas.width, canvas.height):
        canvas.fill_rect(rect.x, rect.y, rect.width, rect.height, PRESERVE)


def default_inpainting_zones() -> InpaintingZones:
    return InpaintingZones()


def calculate_narration_bounds(
    character_position: CharacterPosition,
    narration: str,
    font_size: float = NARRATION_FONT_SIZE,
    line_height: float = NARRATION_LINE_HEIGHT,
    padding: float = NARRATION_PADDING,
    width: int = SPREAD_WIDTH,
) -> Rect:
    """Estimated caption box in the panel opposite the character.

    Use the bounds returned by local compositing when available; this estimate
    wraps by average glyph width and may differ from the rendered text.
    """
    panel_width = width // 2
    panel_x = panel_width if character_position == "left" else 0
    text_width = panel_width - 2 * padding
    chars_per_line = max(1, math.floor(text_width / (font_size * 0.6)))
    lines = wrap_words(narration.split(), chars_per_line)
    return Rect(
        x=panel_x + padding,
        y=padding + NARRATION_TOP_OFFSET,
        width=text_width,
        height=len(lines) * font_size * line_height,
    )


def get_refinement_word_zones(character_position: CharacterPosition, page_number: int) -> list[WordZone]:
    """Small zones for a decorative word; the third zone alternates with page parity."""
    sky_x = 900 if character_position == "left" else 100
    ground_x = 100 if character_position == "left" else 1200
    zones = [
        WordZone(name="top-sky", x=sky_x, y=30, width=150, height=60),
        WordZone(name="bottom-ground", x=ground_x, y=920, width=150, height=60),
    ]
    if page_number % 2 == 0:
        zones.append(WordZone(name="top-right", x=1300, y=200, width=120, height=50))
    else:
        zones.append(WordZone(name="mid-left", x=50, y=500, width=120, height=50))
    return zones


def validate_mask_integrity(
    mask: Image.Image,
    character_position: CharacterPosition,
    narration_bounds: Rect,
    width: int = SPREAD_WIDTH,
    height: int = SPREAD_HEIGHT,
) -> MaskCheck:
    """Check pixel by pixel that every preserve region of a scene mask is black."""
    errors: list[str] = []
    if mask.size != (width, height):
        errors.append(f"mask is {mask.width}x{mask.height}, expected {width}x{height}")
        return MaskCheck(valid=False, errors=errors)
    if mask.mode != "L":
        mask = mask.convert("L")

    names = ("narration", "character panel", "gutter")
    for name, rect in zip(names, preserve_rects(character_position, narration_bounds, width, height)):
        box = (
            math.floor(rect.x),
            math.floor(rect.y),
            math.ceil(rect.right),
            math.ceil(rect.bottom),
        )
        if not region_is(mask, box, PRESERVE):
            errors.append(f"{name} region {box} is not fully preserved")
    return MaskCheck(valid=not errors, errors=errors)
