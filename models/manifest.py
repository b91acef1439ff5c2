from typing import Any

from pydantic import BaseModel, Field

from models.story import IllustrationSet, Story


class BookManifest(BaseModel):
    """Stage 1 output: everything the later stages read about one book.

    `legacy_layouts` holds previously stored page layouts keyed by page number,
    already passed through the sanitizer. Pages that failed sanitization are
    absent.
    """

    book_id: str
    story: Story
    illustrations: IllustrationSet = Field(default_factory=IllustrationSet)
    legacy_layouts: dict[int, dict[str, Any]] = Field(default_factory=dict)
