"""Stage 2: Page Layout — place illustration and narration on every page.

Reads:  data/.cache/manifest.json  (BookManifest)
Writes: data/.cache/layouts.json   (BookLayout)

Per page:
  - a stored layout that survived sanitization is reused as-is
  - otherwise the layout engine places the page with the page's template
    (explicit, else derived from the camera angle). Each attempt is pulled
    off the gutter and inside the margins (``constrain_layouts``). While image
    and text collide, the page is laid out again with the next revision seed,
    up to ``max_layout_revisions`` times. The last attempt is kept either way.

Elements still leaving the safe area are only reported.
"""
import logging

from layout.engine import LayoutEngine, check_collisions, constrain_layout, find_safe_area_violations
from layout.spreads import template_for_page
from models.layout import BookLayout, PageLayout
from models.manifest import BookManifest
from models.story import Page
from settings import Settings

logger = logging.getLogger(__name__)


def run(settings: Settings, manifest: BookManifest) -> BookLayout:
    """Lay out every story page and write layouts.json.

    Returns the completed BookLayout.
    """
    layouts: list[PageLayout] = []
    reused = 0
    for page in manifest.story.pages:
        stored = _stored_layout(page, manifest)
        if stored is not None:
            layouts.append(stored)
            reused += 1
            continue
        image_url = manifest.illustrations.url_for(page.page_number)
        layouts.append(layout_page(settings, page, image_url))

    book_layout = BookLayout(book_id=manifest.book_id, layouts=layouts)

    settings.cache_dir.mkdir(parents=True, exist_ok=True)
    artifact_path = settings.cache_dir / "layouts.json"
    artifact_path.write_text(book_layout.model_dump_json(indent=2), encoding="utf-8")

    logger.info("Stage 2 complete → %s", artifact_path)
    logger.info("  Pages laid out: %d (%d reused from storage)", len(layouts), reused)
    return book_layout


def layout_page(settings: Settings, page: Page, image_url: str) -> PageLayout:
    """Generate a layout, re-seeding with the next revision while elements collide."""
    template_name = template_for_page(page, settings.default_template)

    revision = 0
    while True:
        engine = LayoutEngine(settings.book_id, page.page_number, revision)
        layout = engine.generate_layout(template_name, page.narration, image_url)
        if settings.constrain_layouts:
            layout = constrain_layout(layout)
        if not check_collisions(layout):
            break
        if revision >= settings.max_layout_revisions:
            logger.warning(
                "  [page %d] elements still overlap after %d revision(s) of '%s'",
                page.page_number, revision, layout.template,
            )
            break
        revision += 1

    outside = find_safe_area_violations(layout)
    if outside:
        logger.debug("  [page %d] outside safe area: %s", page.page_number, ", ".join(outside))
    logger.debug(
        "  [page %d] %s rev %d seed %d", page.page_number, layout.template, layout.revision, layout.seed,
    )
    return layout


def _stored_layout(page: Page, manifest: BookManifest) -> PageLayout | None:
    raw = manifest.legacy_layouts.get(page.page_number)
    if raw is None:
        return None
    try:
        layout = PageLayout.model_validate({**raw, "page_number": page.page_number})
    except Exception as exc:
        logger.warning("  [page %d] stored layout unreadable — regenerating: %s", page.page_number, exc)
        return None
    return layout
