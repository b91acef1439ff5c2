from typing import Literal

from pydantic import BaseModel, Field, field_validator


class Page(BaseModel):
    """One story page as handed over by the authoring side.

    `characters_on_page` decides whether the page can host character art at all.
    `layout_template` may be empty; the layout stage then derives a template
    from `camera_angle`.
    """

    page_number: int = Field(ge=1)
    narration: str = ""
    scene_type: Literal["opening", "action", "closing", "transition"] = "action"
    visual_action: str | None = None
    camera_angle: str | None = None
    characters_on_page: list[str] = Field(default_factory=list)
    layout_template: str = ""

    @field_validator("characters_on_page")
    @classmethod
    def characters_are_unique(cls, v: list[str]) -> list[str]:
        # Set semantics, but keep the caller's order for stable serialization
        return list(dict.fromkeys(v))


class Story(BaseModel):
    title: str = ""
    pages: list[Page] = Field(default_factory=list)

    @field_validator("pages")
    @classmethod
    def page_numbers_strictly_increase(cls, v: list[Page]) -> list[Page]:
        numbers = [p.page_number for p in v]
        if any(b <= a for a, b in zip(numbers, numbers[1:])):
            raise ValueError("page numbers must be unique and increasing")
        return v

    def by_page_number(self, page_number: int) -> Page | None:
        return next((p for p in self.pages if p.page_number == page_number), None)


class Illustration(BaseModel):
    """A generated image for one page. `url` is an opaque reference (URL, data URL or path)."""

    page_number: int = Field(ge=1)
    url: str
    style: str = ""
    seed: int | None = None


class IllustrationSet(BaseModel):
    illustrations: list[Illustration] = Field(default_factory=list)

    @field_validator("illustrations")
    @classmethod
    def one_illustration_per_page(cls, v: list[Illustration]) -> list[Illustration]:
        seen: set[int] = set()
        for ill in v:
            if ill.page_number in seen:
                raise ValueError(f"more than one illustration for page {ill.page_number}")
            seen.add(ill.page_number)
        return v

    def by_page_number(self, page_number: int) -> Illustration | None:
        return next((i for i in self.illustrations if i.page_number == page_number), None)

    def url_for(self, page_number: int) -> str:
        """Image reference for a page, or an empty string when none is generated yet."""
        ill = self.by_page_number(page_number)
        return ill.url if ill else ""
