"""Stage 1: Ingest — read the book's story, illustrations and stored layouts.

Reads:  data/story.json          (Story — required)
        data/illustrations.json  (IllustrationSet — optional)
        data/layouts.json        (page number → stored layout — optional, legacy)
Writes: data/.cache/manifest.json  (BookManifest)

Stored layouts pass through the sanitizer before anything else sees them.
A stored layout that cannot be sanitized is skipped with a warning.
"""
import json
import logging
from pathlib import Path
from typing import Any

from layout.sanitizer import detect_deprecated_content, sanitize_book_layouts, sanitize_story_page
from models.manifest import BookManifest
from models.story import IllustrationSet, Story
from settings import Settings

logger = logging.getLogger(__name__)


def run(settings: Settings) -> BookManifest:
    """Load the book inputs and write manifest.json to the cache.

    Raises FileNotFoundError if story.json is missing.
    """
    story = _load_story(settings.story_path)
    illustrations = _load_illustrations(settings.illustrations_path)
    legacy_layouts = _load_legacy_layouts(settings.legacy_layouts_path)

    manifest = BookManifest(
        book_id=settings.book_id,
        story=story,
        illustrations=illustrations,
        legacy_layouts=legacy_layouts,
    )

    settings.cache_dir.mkdir(parents=True, exist_ok=True)
    artifact_path = settings.cache_dir / "manifest.json"
    artifact_path.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")

    illustrated = sum(1 for p in story.pages if illustrations.by_page_number(p.page_number))
    logger.info("Stage 1 complete → %s", artifact_path)
    logger.info("  Title:          %s", story.title or "(untitled)")
    logger.info("  Pages:          %d", len(story.pages))
    logger.info("  Illustrated:    %d", illustrated)
    logger.info("  Stored layouts: %d", len(legacy_layouts))

    return manifest


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def _load_story(path: Path) -> Story:
    if not path.exists():
        raise FileNotFoundError(f"Story file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    # Stories saved by older versions still carry page-level decoration config
    pages = [sanitize_story_page(p) for p in data.get("pages") or []]
    return Story.model_validate({**data, "pages": pages})


def _load_illustrations(path: Path) -> IllustrationSet:
    if not path.exists():
        logger.warning("Illustrations file not found: %s. Pages will render without art.", path)
        return IllustrationSet()
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        data = {"illustrations": data}
    return IllustrationSet.model_validate(data)


def _load_legacy_layouts(path: Path) -> dict[int, dict[str, Any]]:
    if not path.exists():
        return {}
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        logger.warning("Stored layouts in %s are not a page map — ignored", path)
        return {}

    report = detect_deprecated_content({"layouts": raw})
    if report["has_deprecations"]:
        logger.info("  Migrating deprecated decorations on pages %s", report["affected_pages"])
    return sanitize_book_layouts(raw)
