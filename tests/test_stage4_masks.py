"""Tests for Stage 4 Masks."""
import logging
from unittest.mock import patch

from PIL import Image

from masks.canvas import EDITABLE, PRESERVE
from masks.inpainting import validate_mask_integrity
from models.manifest import BookManifest
from models.masks import MaskSet
from models.story import Illustration, IllustrationSet
from pipeline.stage4_masks import run


def _manifest(sample_story, illustrations=None) -> BookManifest:
    return BookManifest(
        book_id="b1",
        story=sample_story,
        illustrations=illustrations or IllustrationSet(),
    )


class TestRun:
    def test_three_masks_per_page(self, settings, sample_story):
        mask_set = run(settings, _manifest(sample_story))
        assert len(mask_set.masks) == 15
        assert [m.kind for m in mask_set.for_page(2)] == ["scene", "character", "background"]

    def test_pngs_and_index_written(self, settings, sample_story):
        mask_set = run(settings, _manifest(sample_story))
        for mask in mask_set.masks:
            path = settings.project_dir / mask.path
            assert path.exists()
            with Image.open(path) as image:
                assert image.size == (mask.width, mask.height)
                assert image.mode == "L"
        index = settings.cache_dir / "masks.json"
        assert MaskSet.model_validate_json(index.read_text(encoding="utf-8")) == mask_set

    def test_paths_relative_to_project(self, settings, sample_story):
        scene = run(settings, _manifest(sample_story)).for_page(3)[0]
        assert not scene.path.is_absolute()
        assert scene.path.name == "page_03_scene.png"

    def test_character_side_alternates(self, settings, sample_story):
        mask_set = run(settings, _manifest(sample_story))
        positions = [m.character_position for m in mask_set.masks if m.kind == "scene"]
        assert positions == ["right", "left", "right", "left", "right"]

    def test_scene_masks_pass_integrity_check(self, settings, sample_story):
        for mask in run(settings, _manifest(sample_story)).masks:
            if mask.kind != "scene":
                continue
            with Image.open(settings.project_dir / mask.path) as image:
                check = validate_mask_integrity(image, mask.character_position, mask.narration_bounds)
            assert check.valid, check.errors

    def test_preserve_level_from_action(self, settings, sample_story):
        mask_set = run(settings, _manifest(sample_story))
        levels = {m.page_number: m.preserve_level for m in mask_set.masks if m.kind == "character"}
        assert levels == {1: "moderate", 2: "loose", 3: "loose", 4: "moderate", 5: "strict"}

    def test_custom_mask_size(self, settings, sample_story):
        settings.mask_width, settings.mask_height = 1024, 768
        scene = run(settings, _manifest(sample_story)).for_page(1)[0]
        assert (scene.width, scene.height) == (1024, 768)

    def test_failing_page_skipped(self, settings, sample_story, caplog):
        with patch("pipeline.stage4_masks.generate_inpainting_mask", side_effect=RuntimeError("boom")), \
                caplog.at_level(logging.WARNING, logger="pipeline.stage4_masks"):
            mask_set = run(settings, _manifest(sample_story))
        assert mask_set.masks == []
        assert "SKIPPED" in caplog.text
        assert (settings.cache_dir / "masks.json").exists()


class TestLocalComposition:
    def _with_local_art(self, settings, sample_story) -> BookManifest:
        settings.assets_dir.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", (200, 300), (200, 40, 40, 255)).save(settings.assets_dir / "mia.png")
        illustrations = IllustrationSet(illustrations=[
            Illustration(page_number=2, url="assets/mia.png"),
            Illustration(page_number=3, url="https://img.example/remote.png"),
        ])
        return _manifest(sample_story, illustrations)

    def test_local_art_is_composited(self, settings, sample_story):
        run(settings, self._with_local_art(settings, sample_story))
        composed = settings.cache_dir / "pages" / "page_02.png"
        assert composed.exists()
        assert not (settings.cache_dir / "pages" / "page_03.png").exists()
        with Image.open(composed) as image:
            assert image.size == (1536, 1024)

    def test_measured_bounds_used(self, settings, sample_story):
        mask_set = run(settings, self._with_local_art(settings, sample_story))
        scene = mask_set.for_page(2)[0]
        # Page 2: character left, narration in the right panel
        assert scene.narration_bounds.x == 768 + 70
        assert scene.narration_bounds.y == 150
        with Image.open(settings.project_dir / scene.path) as image:
            assert image.getpixel((100, 100)) == PRESERVE
            assert image.getpixel((10, 10)) == EDITABLE
