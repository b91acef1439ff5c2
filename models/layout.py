"""Layout data model — templates (catalog input) and page layouts (engine output).

All `PageLayout` coordinates are absolute canvas pixels with the element's
centre as anchor. Template coordinates are canvas fractions.
"""
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Template side
# ---------------------------------------------------------------------------

class Range(BaseModel):
    """Closed interval a jitter value is drawn from.

    Accepts a two-item list (``[-0.03, 0.03]``) as shorthand, which is how the
    template catalog writes it.
    """

    min: float
    max: float

    @model_validator(mode="before")
    @classmethod
    def from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("range shorthand needs exactly two values")
            return {"min": data[0], "max": data[1]}
        return data

    @model_validator(mode="after")
    def min_not_above_max(self) -> "Range":
        if self.min > self.max:
            raise ValueError(f"range min {self.min} is above max {self.max}")
        return self


class Jitter(BaseModel):
    """Jitter for text frames: translation in canvas fractions, rotation in degrees."""

    dx: Range = Field(default_factory=lambda: Range(min=0.0, max=0.0))
    dy: Range = Field(default_factory=lambda: Range(min=0.0, max=0.0))
    rotate_deg: Range = Field(default_factory=lambda: Range(min=0.0, max=0.0))


class SlotJitter(Jitter):
    """Jitter for image slots — adds a multiplicative scale range."""

    scale: Range = Field(default_factory=lambda: Range(min=1.0, max=1.0))


class Point(BaseModel):
    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)


class Size(BaseModel):
    w: float = Field(gt=0.0, le=1.0)
    h: float = Field(gt=0.0, le=1.0)


class TextStyle(BaseModel):
    font_family: str = "Patrick Hand"
    font_size_pt: float = 24.0
    text_align: Literal["left", "center", "right"] = "center"
    color: str = "#2D3748"
    line_height: float = 1.4
    font_weight: str | None = None
    letter_spacing: str | None = None
    background_color: str | None = None


class ImageSlot(BaseModel):
    id: str
    anchor: Point
    size: Size
    fit: Literal["cover", "contain"] = "cover"
    mask: str = "none"
    z_index: int = 0
    jitter: SlotJitter = Field(default_factory=SlotJitter)


class TextFrame(BaseModel):
    id: str
    anchor: Point
    box: Size
    z_index: int = 0
    styles: TextStyle = Field(default_factory=TextStyle)
    jitter: Jitter = Field(default_factory=Jitter)


class TemplateCanvas(BaseModel):
    width_px: int = Field(gt=0)
    height_px: int = Field(gt=0)
    dpi: int = Field(default=300, gt=0)
    bleed_px: int = Field(default=0, ge=0)
    margin_px: int = Field(default=0, ge=0)
    gutter_px: int = Field(default=0, ge=0)


class LayoutTemplate(BaseModel):
    """Immutable catalog entry. Instances are shared; never mutate them."""

    model_config = ConfigDict(frozen=True)

    name: str
    canvas: TemplateCanvas
    image_slots: list[ImageSlot] = Field(default_factory=list)
    text_frames: list[TextFrame] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Layout side
# ---------------------------------------------------------------------------

class Rect(BaseModel):
    """Axis-aligned rectangle, top-left anchored, in pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains_rect(self, other: "Rect") -> bool:
        return (
            other.x >= self.x and other.y >= self.y
            and other.right <= self.right and other.bottom <= self.bottom
        )

    def expanded(self, margin: float) -> "Rect":
        return Rect(
            x=self.x - margin,
            y=self.y - margin,
            width=self.width + 2 * margin,
            height=self.height + 2 * margin,
        )


class CanvasSpec(BaseModel):
    width: int
    height: int
    dpi: int = 300
    bleed: int = 0
    margin: int = 0
    gutter: int = 0

    @property
    def safe_area(self) -> Rect:
        """Canvas inset by the margin on every side."""
        return Rect(
            x=self.margin,
            y=self.margin,
            width=self.width - 2 * self.margin,
            height=self.height - 2 * self.margin,
        )

    @property
    def bleed_area(self) -> Rect:
        return Rect(
            x=-self.bleed,
            y=-self.bleed,
            width=self.width + 2 * self.bleed,
            height=self.height + 2 * self.bleed,
        )

    @property
    def gutter_area(self) -> Rect:
        return Rect(
            x=self.width / 2 - self.gutter / 2,
            y=0,
            width=self.gutter,
            height=self.height,
        )

    @property
    def width_mm(self) -> float:
        return round(self.width / self.dpi * 25.4, 2)

    @property
    def height_mm(self) -> float:
        return round(self.height / self.dpi * 25.4, 2)

    @classmethod
    def from_template(cls, canvas: TemplateCanvas) -> "CanvasSpec":
        return cls(
            width=canvas.width_px,
            height=canvas.height_px,
            dpi=canvas.dpi,
            bleed=canvas.bleed_px,
            margin=canvas.margin_px,
            gutter=canvas.gutter_px,
        )


class _ElementBase(BaseModel):
    id: str
    x: float
    y: float
    width: float = Field(ge=0.0)
    height: float = Field(ge=0.0)
    # Older stored layouts use the camelCase / short names
    rotation_deg: float = Field(default=0.0, validation_alias=AliasChoices("rotation_deg", "rotation"))
    z_index: int = Field(default=0, validation_alias=AliasChoices("z_index", "zIndex"))

    @property
    def bounds(self) -> Rect:
        """Axis-aligned bounding box. Rotation is not taken into account."""
        return Rect(
            x=self.x - self.width / 2,
            y=self.y - self.height / 2,
            width=self.width,
            height=self.height,
        )


class ImageElement(_ElementBase):
    type: Literal["image"] = "image"
    url: str = ""


class TextElement(_ElementBase):
    type: Literal["text"] = "text"
    content: str = ""
    style: TextStyle | None = None


class DecorationElement(_ElementBase):
    """Legacy element kind. Only found in stored layouts; the sanitizer removes it."""

    type: Literal["decoration"] = "decoration"
    content: str | None = None


LayoutElement = Annotated[
    Union[ImageElement, TextElement, DecorationElement],
    Field(discriminator="type"),
]


class PageLayout(BaseModel):
    canvas: CanvasSpec
    elements: list[LayoutElement] = Field(default_factory=list)
    seed: int
    template: str
    page_number: int | None = None
    revision: int = 0

    @model_validator(mode="after")
    def elements_in_z_order(self) -> "PageLayout":
        # Stable: equal z-index keeps input order
        self.elements.sort(key=lambda e: e.z_index)
        return self

    def element(self, element_id: str) -> ImageElement | TextElement | DecorationElement | None:
        return next((e for e in self.elements if e.id == element_id), None)

    @property
    def image_elements(self) -> list[ImageElement]:
        return [e for e in self.elements if isinstance(e, ImageElement)]

    @property
    def text_elements(self) -> list[TextElement]:
        return [e for e in self.elements if isinstance(e, TextElement)]


class BookLayout(BaseModel):
    book_id: str
    layouts: list[PageLayout] = Field(default_factory=list)

    def by_page_number(self, page_number: int) -> PageLayout | None:
        return next((l for l in self.layouts if l.page_number == page_number), None)
