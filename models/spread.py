from typing import Literal

from pydantic import BaseModel, Field

from models.layout import PageLayout

Placement = Literal["left", "right", "center"]
Beat = Literal["setup", "discovery", "challenge", "big_moment", "resolution"]


class SpreadPage(BaseModel):
    """One side of a paired spread.

    `image_url` is empty while the page has no illustration yet; the spread is
    still displayable with the narration alone.
    """

    page_number: int
    narration: str = ""
    image_url: str = ""
    layout: PageLayout


class Spread(BaseModel):
    spread_number: int = Field(ge=1)
    left_page: SpreadPage | None = None
    right_page: SpreadPage | None = None
    character_placement: Placement
    text_zone: Placement
    has_character_slot: bool = False
    beat: Beat = "setup"

    @property
    def page_numbers(self) -> list[int]:
        return [p.page_number for p in (self.left_page, self.right_page) if p is not None]


class LandscapeSpread(BaseModel):
    """Single 1536×1024 landscape page shown as an open book with a divider."""

    spread_index: int = Field(ge=0)
    page_number: int
    image_url: str = ""
    text: str = ""
    page_range_label: str


class SpreadPlan(BaseModel):
    model: Literal["paired", "landscape"]
    spreads: list[Spread] = Field(default_factory=list)
    landscape_spreads: list[LandscapeSpread] = Field(default_factory=list)
