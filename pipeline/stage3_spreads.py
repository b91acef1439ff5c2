"""Stage 3: Spreads — group laid-out pages into what the reader sees at once.

Reads:  data/.cache/manifest.json  (BookManifest)
        data/.cache/layouts.json   (BookLayout)
Writes: data/.cache/spreads.json   (SpreadPlan)

``spread_model`` picks the display model: "paired" puts two pages on each
spread, "landscape" shows every composited page as its own spread.
"""
import logging

from layout.spreads import build_paired_spreads, build_spreads
from models.layout import BookLayout
from models.manifest import BookManifest
from models.spread import SpreadPlan
from settings import Settings

logger = logging.getLogger(__name__)


def run(settings: Settings, manifest: BookManifest, book_layout: BookLayout) -> SpreadPlan:
    """Build the spread plan and write spreads.json."""
    pages = manifest.story.pages

    if settings.spread_model == "landscape":
        plan = SpreadPlan(
            model="landscape",
            landscape_spreads=build_spreads(pages, manifest.illustrations),
        )
        count = len(plan.landscape_spreads)
    else:
        layouts = {
            layout.page_number: layout
            for layout in book_layout.layouts
            if layout.page_number is not None
        }
        plan = SpreadPlan(
            model="paired",
            spreads=build_paired_spreads(
                pages,
                manifest.illustrations,
                settings.book_id,
                layouts=layouts,
                default_template=settings.default_template,
            ),
        )
        count = len(plan.spreads)
        for spread in plan.spreads:
            logger.debug(
                "  Spread %d pages %s: character %s, %s",
                spread.spread_number, spread.page_numbers, spread.character_placement, spread.beat,
            )

    settings.cache_dir.mkdir(parents=True, exist_ok=True)
    artifact_path = settings.cache_dir / "spreads.json"
    artifact_path.write_text(plan.model_dump_json(indent=2), encoding="utf-8")

    logger.info("Stage 3 complete → %s", artifact_path)
    logger.info("  Model:   %s", plan.model)
    logger.info("  Spreads: %d", count)
    return plan
