"""Stage 4: Masks — write the inpainting masks each page needs for image editing.

Reads:  data/.cache/manifest.json  (BookManifest)
        data/illustrations/…       (local character art, optional)
Writes: data/.cache/masks/page_NN_scene.png
        data/.cache/masks/page_NN_character.png
        data/.cache/masks/page_NN_background.png
        data/.cache/pages/page_NN.png   (composited page, local art only)
        data/.cache/masks.json          (MaskSet)

The character sits on the left half of even pages and the right half of odd
pages. When the page's illustration is a local file the page is composited
here and the scene mask protects the measured narration box; otherwise the box
is estimated from the narration length.

A page that fails is logged and skipped; the other pages still get masks.
"""
import logging
from pathlib import Path

from PIL import Image

from layout.composition import PAGE_HEIGHT, PAGE_WIDTH, character_position_for_page, compose_landscape_page
from masks.character import (
    CHARACTER_MASK_SIZE,
    generate_background_removal_mask,
    generate_character_preservation_mask,
    preserve_level_for_action,
)
from masks.inpainting import calculate_narration_bounds, generate_inpainting_mask, validate_mask_integrity
from models.layout import Rect
from models.manifest import BookManifest
from models.masks import CharacterPosition, MaskArtifact, MaskSet
from models.story import Page
from settings import Settings

logger = logging.getLogger(__name__)


def run(settings: Settings, manifest: BookManifest) -> MaskSet:
    """Generate masks for every page and write masks.json."""
    settings.masks_dir.mkdir(parents=True, exist_ok=True)
    masks: list[MaskArtifact] = []

    for page in manifest.story.pages:
        try:
            masks.extend(_page_masks(settings, manifest, page))
        except Exception as exc:
            logger.warning("  [page %d] mask generation failed — SKIPPED: %s", page.page_number, exc)

    mask_set = MaskSet(masks=masks)
    artifact_path = settings.cache_dir / "masks.json"
    artifact_path.write_text(mask_set.model_dump_json(indent=2), encoding="utf-8")

    logger.info("Stage 4 complete → %s", artifact_path)
    logger.info("  Masks written: %d", len(masks))
    return mask_set


def _page_masks(settings: Settings, manifest: BookManifest, page: Page) -> list[MaskArtifact]:
    position = character_position_for_page(page.page_number)
    bounds = _narration_bounds(settings, manifest, page, position)

    scene = generate_inpainting_mask(
        position, bounds, width=settings.mask_width, height=settings.mask_height,
    )
    check = validate_mask_integrity(
        scene, position, bounds, width=settings.mask_width, height=settings.mask_height,
    )
    if not check.valid:
        logger.warning("  [page %d] scene mask failed integrity check: %s", page.page_number, "; ".join(check.errors))

    level = preserve_level_for_action(page.visual_action)
    prefix = f"page_{page.page_number:02d}"

    return [
        MaskArtifact(
            page_number=page.page_number,
            kind="scene",
            path=_save(settings, scene, f"{prefix}_scene.png"),
            width=scene.width,
            height=scene.height,
            character_position=position,
            narration_bounds=bounds,
        ),
        MaskArtifact(
            page_number=page.page_number,
            kind="character",
            path=_save(settings, generate_character_preservation_mask(level), f"{prefix}_character.png"),
            width=CHARACTER_MASK_SIZE,
            height=CHARACTER_MASK_SIZE,
            preserve_level=level,
        ),
        MaskArtifact(
            page_number=page.page_number,
            kind="background",
            path=_save(settings, generate_background_removal_mask(), f"{prefix}_background.png"),
            width=CHARACTER_MASK_SIZE,
            height=CHARACTER_MASK_SIZE,
        ),
    ]


def _narration_bounds(
    settings: Settings,
    manifest: BookManifest,
    page: Page,
    position: CharacterPosition,
) -> Rect:
    art_path = _local_art_path(settings, manifest.illustrations.url_for(page.page_number))
    composable = (settings.mask_width, settings.mask_height) == (PAGE_WIDTH, PAGE_HEIGHT)
    if art_path is None or not composable:
        return calculate_narration_bounds(position, page.narration, width=settings.mask_width)

    with Image.open(art_path) as art:
        result = compose_landscape_page(art, page.narration, position, font_path=settings.font_path)

    pages_dir = settings.cache_dir / "pages"
    pages_dir.mkdir(parents=True, exist_ok=True)
    result.image.save(pages_dir / f"page_{page.page_number:02d}.png")
    logger.debug("  [page %d] composited from %s", page.page_number, art_path.name)
    return result.text_bounds


def _local_art_path(settings: Settings, url: str) -> Path | None:
    """Resolve an illustration reference to an existing local file, if it is one."""
    if not url or url.startswith(("http://", "https://", "data:")):
        return None
    path = Path(url.removeprefix("file://"))
    if not path.is_absolute():
        path = settings.project_dir / path
    return path if path.is_file() else None


def _save(settings: Settings, mask: Image.Image, filename: str) -> Path:
    path = settings.masks_dir / filename
    mask.save(path)
    return path.relative_to(settings.project_dir)
