from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    book_id: str

    project_dir: Path = Path("./data")
    default_template: str = "hero_spread"
    spread_model: Literal["paired", "landscape"] = "paired"
    max_layout_revisions: int = 3
    constrain_layouts: bool = True
    mask_width: int = 1536
    mask_height: int = 1024
    font_path: Path | None = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SBL_",
        env_file_encoding="utf-8",
    )

    @field_validator("book_id")
    @classmethod
    def book_id_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("book_id must not be blank")
        return v

    @field_validator("max_layout_revisions")
    @classmethod
    def revisions_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_layout_revisions must be 0 or more")
        return v

    @field_validator("mask_width")
    @classmethod
    def mask_width_must_split_into_panels(cls, v: int) -> int:
        if v <= 0 or v % 2:
            raise ValueError("mask_width must be a positive even number")
        return v

    @field_validator("mask_height")
    @classmethod
    def mask_height_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("mask_height must be positive")
        return v

    @property
    def story_path(self) -> Path:
        return self.project_dir / "story.json"

    @property
    def illustrations_path(self) -> Path:
        return self.project_dir / "illustrations.json"

    @property
    def legacy_layouts_path(self) -> Path:
        return self.project_dir / "layouts.json"

    @property
    def assets_dir(self) -> Path:
        return self.project_dir / "assets"

    @property
    def cache_dir(self) -> Path:
        return self.project_dir / ".cache"

    @property
    def masks_dir(self) -> Path:
        return self.cache_dir / "masks"

    @property
    def output_dir(self) -> Path:
        return self.project_dir / "output"
