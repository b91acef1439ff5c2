"""Layout engine — place a page's illustration and narration on its print canvas.

Placement is deterministic: every engine instance owns a seeded random stream
keyed by ``(book_id, page_number, revision)``. Jitter draws happen in a fixed
order — image slot before text frame; dx, dy, scale (images only), rotation —
so two engines built from the same key produce identical layouts.

Collision detection is advisory. The engine never moves elements to resolve an
overlap; callers re-run with a new revision or a different template.
``constrain_layout`` is a separate pass that pulls elements off the spine
gutter and inside the margins; ``generate_layout`` never applies it.
"""
import logging
from typing import NamedTuple

from layout.rng import SeededRandom, make_seed, sample_within
from layout.templates import DEFAULT_TEMPLATE, has_template, resolve_template
from models.layout import (
    CanvasSpec,
    ImageElement,
    Jitter,
    PageLayout,
    Rect,
    SlotJitter,
    TextElement,
)

logger = logging.getLogger(__name__)

GUTTER_CLEARANCE = 20


class JitterDraw(NamedTuple):
    dx: float
    dy: float
    scale: float
    rotation: float


def draw_jitter(rng: SeededRandom, jitter: Jitter) -> JitterDraw:
    """Draw one jitter set. The only place jitter values are sampled.

    Slot jitter advances the stream four times, frame jitter three times
    (frames do not scale).
    """
    dx = sample_within(rng, jitter.dx)
    dy = sample_within(rng, jitter.dy)
    scale = sample_within(rng, jitter.scale) if isinstance(jitter, SlotJitter) else 1.0
    rotation = sample_within(rng, jitter.rotate_deg)
    return JitterDraw(dx=dx, dy=dy, scale=scale, rotation=rotation)


class LayoutEngine:
    def __init__(self, book_id: str, page_number: int, revision: int = 0):
        self.book_id = book_id
        self.page_number = page_number
        self.revision = revision
        self.seed = make_seed(book_id, page_number, revision)
        self._rng = SeededRandom(self.seed)

    def generate_layout(
        self,
        template_name: str,
        narration: str,
        illustration_url: str,
    ) -> PageLayout:
        """Resolve the template and place the first image slot and first text frame.

        A missing illustration or empty narration simply leaves that element out.
        Unknown template names fall back to the default template.
        """
        template = resolve_template(template_name)
        canvas = template.canvas
        elements: list[ImageElement | TextElement] = []

        slot = template.image_slots[0] if template.image_slots else None
        if slot and illustration_url:
            j = draw_jitter(self._rng, slot.jitter)
            elements.append(ImageElement(
                id=slot.id,
                x=(slot.anchor.x + j.dx) * canvas.width_px,
                y=(slot.anchor.y + j.dy) * canvas.height_px,
                width=slot.size.w * canvas.width_px * j.scale,
                height=slot.size.h * canvas.height_px * j.scale,
                rotation_deg=j.rotation,
                z_index=slot.z_index,
                url=illustration_url,
            ))

        frame = template.text_frames[0] if template.text_frames else None
        if frame and narration:
            j = draw_jitter(self._rng, frame.jitter)
            elements.append(TextElement(
                id=frame.id,
                x=(frame.anchor.x + j.dx) * canvas.width_px,
                y=(frame.anchor.y + j.dy) * canvas.height_px,
                width=frame.box.w * canvas.width_px,
                height=frame.box.h * canvas.height_px,
                rotation_deg=j.rotation,
                z_index=frame.z_index,
                content=narration,
                style=frame.styles.model_copy(),
            ))

        # sorted() is stable, so equal z-indexes keep slot-before-frame order
        elements = sorted(elements, key=lambda e: e.z_index)

        return PageLayout(
            canvas=CanvasSpec.from_template(canvas),
            elements=elements,
            seed=self.seed,
            template=template_name if has_template(template_name) else DEFAULT_TEMPLATE,
            page_number=self.page_number,
            revision=self.revision,
        )

    def check_collisions(self, layout: PageLayout) -> bool:
        return check_collisions(layout)


def is_colliding(a, b) -> bool:
    """Axis-aligned box overlap test on centre-anchored elements.

    Rotation is ignored. Touching edges count as overlap.
    """
    a_left, a_right = a.x - a.width / 2, a.x + a.width / 2
    a_top, a_bottom = a.y - a.height / 2, a.y + a.height / 2
    b_left, b_right = b.x - b.width / 2, b.x + b.width / 2
    b_top, b_bottom = b.y - b.height / 2, b.y + b.height / 2
    return not (a_right < b_left or a_left > b_right or a_bottom < b_top or a_top > b_bottom)


def check_collisions(layout: PageLayout) -> bool:
    """True as soon as any two non-decoration elements overlap."""
    elements = layout.elements
    for i in range(len(elements)):
        for j in range(i + 1, len(elements)):
            a, b = elements[i], elements[j]
            if a.type == "decoration" or b.type == "decoration":
                continue
            if is_colliding(a, b):
                return True
    return False


def find_safe_area_violations(layout: PageLayout) -> list[str]:
    """Ids of elements whose bounding box leaves the canvas safe area."""
    safe = layout.canvas.safe_area
    return [e.id for e in layout.elements if not safe.contains_rect(e.bounds)]



def constrain_layout(layout: PageLayout) -> PageLayout:
    """Copy of ``layout`` with images and text pulled inside the safe area.

    Text overlapping the spine gutter is first pushed to the nearer side,
    ``GUTTER_CLEARANCE`` px clear, then every image and text element is clamped
    so its box sits within the margins. Clamping is applied last, so an element
    wider than the room beside the gutter can still reach into it. Decorations
    keep their positions. Sizes, rotation and order never change.
    """
    canvas = layout.canvas
    safe = canvas.safe_area
    gutter = canvas.gutter_area if canvas.gutter else None

    elements = []
    for element in layout.elements:
        if element.type == "decoration":
            elements.append(element)
            continue
        x, y = element.x, element.y
        if element.type == "text" and gutter is not None:
            x = _off_gutter(x, element.width, gutter)
        half_w, half_h = element.width / 2, element.height / 2
        x = _clamp(x, safe.x + half_w, safe.right - half_w)
        y = _clamp(y, safe.y + half_h, safe.bottom - half_h)
        elements.append(element.model_copy(update={"x": x, "y": y}))
    return layout.model_copy(update={"elements": elements})


def _off_gutter(x: float, width: float, gutter: Rect) -> float:
    left, right = x - width / 2, x + width / 2
    if not (left < gutter.right and right > gutter.x):
        return x
    # Shorter move wins; ties go left
    if right - gutter.x <= gutter.right - left:
        return gutter.x - width / 2 - GUTTER_CLEARANCE
    return gutter.right + width / 2 + GUTTER_CLEARANCE


def _clamp(value: float, low: float, high: float) -> float:
    # Oversized elements pin to the low edge
    return max(low, min(high, value))
