from pathlib import Path

import pytest

from models.story import Illustration, IllustrationSet, Page, Story
from settings import Settings

BOOK_ID = "b1"


@pytest.fixture
def sample_story() -> Story:
    """Five-page story: opens on page 1, closes on page 5, characters on most pages."""
    return Story(
        title="Mia Finds the Moon",
        pages=[
            Page(page_number=1, narration="Mia looks up at the night sky.", scene_type="opening",
                 camera_angle="wide", characters_on_page=["Mia"]),
            Page(page_number=2, narration="Where did the moon go?", visual_action="crawling to the window",
                 camera_angle="close-up", characters_on_page=["Mia"]),
            Page(page_number=3, narration="Mia climbs up high to look.", visual_action="reaching up",
                 camera_angle="medium", characters_on_page=["Mia", "Teddy"]),
            Page(page_number=4, narration="The clouds roll away.", camera_angle="bird's-eye"),
            Page(page_number=5, narration="There it is! Good night, moon.", scene_type="closing",
                 visual_action="sleeping", characters_on_page=["Mia"]),
        ],
    )


@pytest.fixture
def sample_illustrations() -> IllustrationSet:
    """Illustrations for every page except page 4."""
    return IllustrationSet(illustrations=[
        Illustration(page_number=n, url=f"https://img.example/{BOOK_ID}/page-{n}.png", style="watercolor")
        for n in (1, 2, 3, 5)
    ])


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings for an empty project directory. No story on disk."""
    return Settings(book_id=BOOK_ID, project_dir=tmp_path)


@pytest.fixture
def tmp_settings(tmp_path: Path, sample_story: Story, sample_illustrations: IllustrationSet) -> Settings:
    """Settings pointing at a temp project with story.json and illustrations.json written.

    Directory layout mirrors the real project:
        data/story.json          the story pages
        data/illustrations.json  generated art per page
        data/assets/             local art (character cut-outs)
    """
    (tmp_path / "assets").mkdir()
    (tmp_path / "story.json").write_text(sample_story.model_dump_json(indent=2), encoding="utf-8")
    (tmp_path / "illustrations.json").write_text(
        sample_illustrations.model_dump_json(indent=2), encoding="utf-8",
    )
    return Settings(book_id=BOOK_ID, project_dir=tmp_path)
