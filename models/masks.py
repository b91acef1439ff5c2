from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from models.layout import Rect

PreserveLevel = Literal["strict", "moderate", "loose"]
CharacterPosition = Literal["left", "right"]


class Band(BaseModel):
    y: int = Field(ge=0)
    height: int = Field(ge=0)


class Margins(BaseModel):
    left: int = Field(default=15, ge=0)
    right: int = Field(default=15, ge=0)


class InpaintingZones(BaseModel):
    """Areas a scene-detail pass may paint into. Defaults match a 1536×1024 canvas."""

    top_band: Band = Field(default_factory=lambda: Band(y=0, height=120))
    bottom_band: Band = Field(default_factory=lambda: Band(y=900, height=124))
    corners: list[Rect] = Field(default_factory=lambda: [
        Rect(x=20, y=150, width=200, height=80),
        Rect(x=1316, y=150, width=200, height=80),
        Rect(x=20, y=780, width=200, height=80),
        Rect(x=1316, y=780, width=200, height=80),
    ])
    margins: Margins = Field(default_factory=Margins)


class WordZone(Rect):
    """Named placement zone for a decorative word (e.g. "splash!")."""

    name: str


class MaskArtifact(BaseModel):
    """A mask PNG written by the mask stage. `path` is relative to project_dir."""

    page_number: int
    kind: Literal["scene", "character", "background"]
    path: Path
    width: int
    height: int
    character_position: CharacterPosition | None = None
    preserve_level: PreserveLevel | None = None
    narration_bounds: Rect | None = None


class MaskSet(BaseModel):
    masks: list[MaskArtifact] = Field(default_factory=list)

    def for_page(self, page_number: int) -> list[MaskArtifact]:
        return [m for m in self.masks if m.page_number == page_number]
