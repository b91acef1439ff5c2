"""Spread builder — turn an ordered page list into display spreads.

Two display models:

  - landscape: every page is one composited 1536×1024 image shown as an open
    book, so each page maps to exactly one spread.
  - paired: pages (1, 2), (3, 4), … share a spread. The last spread has no right
    page when the page count is odd. Character art goes to one side only,
    alternating left/right, or to the centre for a "big reveal" — when the
    left page opens the story or the right page closes it.

A page without an illustration yet gets an empty image reference; spreads are
always buildable from a partially illustrated book.
"""
import logging

from layout.engine import LayoutEngine
from layout.templates import DEFAULT_TEMPLATE, template_for_shot
from models.layout import PageLayout
from models.spread import Beat, LandscapeSpread, Placement, Spread, SpreadPage
from models.story import Illustration, IllustrationSet, Page

logger = logging.getLogger(__name__)


def build_spreads(
    pages: list[Page],
    illustrations: list[Illustration] | IllustrationSet,
) -> list[LandscapeSpread]:
    """One spread per page, in page-number order."""
    ill_set = _as_set(illustrations)
    spreads: list[LandscapeSpread] = []
    for index, page in enumerate(sorted(pages, key=lambda p: p.page_number)):
        spreads.append(LandscapeSpread(
            spread_index=index,
            page_number=page.page_number,
            image_url=ill_set.url_for(page.page_number),
            text=page.narration or "",
            page_range_label=f"Page {page.page_number}",
        ))
    return spreads


def build_paired_spreads(
    pages: list[Page],
    illustrations: list[Illustration] | IllustrationSet,
    book_id: str,
    layouts: dict[int, PageLayout] | None = None,
    default_template: str = DEFAULT_TEMPLATE,
) -> list[Spread]:
    """Group pages two at a time into spreads.

    ``layouts`` supplies already computed page layouts by page number; pages
    without one are laid out here with revision 0.
    """
    ill_set = _as_set(illustrations)
    layouts = layouts or {}
    ordered = sorted(pages, key=lambda p: p.page_number)
    total = (len(ordered) + 1) // 2

    spreads: list[Spread] = []
    for index in range(total):
        left = ordered[2 * index]
        right = ordered[2 * index + 1] if 2 * index + 1 < len(ordered) else None
        placement = character_placement(index, left, right)
        spreads.append(Spread(
            spread_number=index + 1,
            left_page=_spread_page(left, ill_set, book_id, layouts, default_template),
            right_page=(
                _spread_page(right, ill_set, book_id, layouts, default_template)
                if right else None
            ),
            character_placement=placement,
            text_zone=opposite_side(placement),
            has_character_slot=bool(left.characters_on_page or (right and right.characters_on_page)),
            beat=spread_beat(index, total),
        ))
    return spreads


def character_placement(spread_index: int, left: Page | None, right: Page | None) -> Placement:
    """Alternate left/right by spread index; centre when the story opens or closes here."""
    if (left and left.scene_type == "opening") or (right and right.scene_type == "closing"):
        return "center"
    return "left" if spread_index % 2 == 0 else "right"


def opposite_side(placement: Placement) -> Placement:
    if placement == "left":
        return "right"
    if placement == "right":
        return "left"
    return "center"


def spread_beat(spread_index: int, total_spreads: int) -> Beat:
    """Story beat by relative position of the spread within the book."""
    position = spread_index / ((total_spreads - 1) or 1)
    if position < 0.2:
        return "setup"
    if position < 0.5:
        return "discovery"
    if position < 0.7:
        return "challenge"
    if position < 0.9:
        return "big_moment"
    return "resolution"


def template_for_page(page: Page, default_template: str = DEFAULT_TEMPLATE) -> str:
    """The page's own template, else one derived from its camera angle."""
    if page.layout_template:
        return page.layout_template
    return template_for_shot(page.camera_angle, default=default_template)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _spread_page(
    page: Page,
    ill_set: IllustrationSet,
    book_id: str,
    layouts: dict[int, PageLayout],
    default_template: str,
) -> SpreadPage:
    image_url = ill_set.url_for(page.page_number)
    if not image_url:
        logger.debug("  [page %d] no illustration yet — spread shows narration only", page.page_number)
    layout = layouts.get(page.page_number)
    if layout is None:
        layout = LayoutEngine(book_id, page.page_number).generate_layout(
            template_for_page(page, default_template), page.narration, image_url,
        )
    return SpreadPage(
        page_number=page.page_number,
        narration=page.narration or "",
        image_url=image_url,
        layout=layout,
    )


def _as_set(illustrations: list[Illustration] | IllustrationSet) -> IllustrationSet:
    if isinstance(illustrations, IllustrationSet):
        return illustrations
    return IllustrationSet(illustrations=list(illustrations))
