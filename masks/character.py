"""Character masks for pose variants and style anchors (1024×1024).

Black keeps the character's identity (face, head, torso); white leaves limbs
and pose free for the edit. Masks are pure geometry — equal arguments always
produce identical pixels.
"""
from typing import NamedTuple

from PIL import Image

from masks.canvas import MaskCanvas
from models.layout import Rect
from models.masks import PreserveLevel

CHARACTER_MASK_SIZE = 1024
_FEATHER_WIDTH = 20

_STILL_KEYWORDS = ("sleep", "rest", "portrait")
# Stems, so inflected forms ("dancing", "jumps") match too
_MOVING_KEYWORDS = ("reach", "crawl", "walk", "jump", "play", "danc")


class _Ellipse(NamedTuple):
    cx: float
    cy: float
    rx: float
    ry: float


# Per level: head ellipse and optional torso rectangle (x, y, w, h)
_PRESERVE_SHAPES: dict[str, tuple[_Ellipse, tuple[int, int, int, int] | None]] = {
    "strict": (_Ellipse(512, 300, 280, 320), (312, 500, 400, 200)),
    "moderate": (_Ellipse(512, 280, 260, 300), (362, 480, 300, 180)),
    "loose": (_Ellipse(512, 260, 240, 280), None),
}


def preserve_level_for_action(action: str | None) -> PreserveLevel:
    """Pick how much of the character to lock for a described action.

    Still poses (sleeping, resting, portraits) lock the most; big movements
    (reaching, crawling, walking, jumping, playing, dancing) lock the head only.
    """
    if not action:
        return "moderate"
    lowered = action.lower()
    if any(k in lowered for k in _STILL_KEYWORDS):
        return "strict"
    if any(k in lowered for k in _MOVING_KEYWORDS):
        return "loose"
    return "moderate"


def generate_character_preservation_mask(preserve_level: PreserveLevel = "moderate") -> Image.Image:
    """Head ellipse (all levels) plus torso rectangle (strict, moderate).

    A 20px half-grey feather runs along the head outline so the edit blends
    instead of leaving a hard seam.
    """
    if preserve_level not in _PRESERVE_SHAPES:
        raise ValueError(f"unknown preserve level: {preserve_level!r}")
    head, torso = _PRESERVE_SHAPES[preserve_level]

    canvas = MaskCanvas(CHARACTER_MASK_SIZE, CHARACTER_MASK_SIZE)
    canvas.fill_ellipse(*head)
    if torso:
        canvas.fill_rect(*torso)
    canvas.stroke_ellipse(*head, line_width=_FEATHER_WIDTH)
    return canvas.to_image()


def generate_background_removal_mask() -> Image.Image:
    """Keep a central standing-baby silhouette; everything else may be cleared."""
    canvas = MaskCanvas(CHARACTER_MASK_SIZE, CHARACTER_MASK_SIZE)
    canvas.fill_ellipse(512, 512, 320, 450)
    return canvas.to_image()


def generate_custom_preservation_mask(
    preserve_regions: list[Rect],
    size: int = CHARACTER_MASK_SIZE,
) -> Image.Image:
    canvas = MaskCanvas(size, size)
    for region in preserve_regions:
        canvas.fill_rect(region.x, region.y, region.width, region.height)
    return canvas.to_image()


def preserve_shapes(preserve_level: PreserveLevel) -> tuple[_Ellipse, Rect | None]:
    """Head ellipse and torso rectangle for a level, for callers verifying masks."""
    head, torso = _PRESERVE_SHAPES[preserve_level]
    torso_rect = Rect(x=torso[0], y=torso[1], width=torso[2], height=torso[3]) if torso else None
    return head, torso_rect
