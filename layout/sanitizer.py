"""Layout sanitizer — migration gate for stored page layouts.

Older layouts carry decoration data that the engine and the export no longer
understand:

  - a root-level ``decorations`` field           → dropped
  - ``type: "decoration"`` elements               → dropped, except
  - the ``text_plaque`` decoration                → kept, reclassified as text
  - per-element ``opacity`` / ``decorations``     → dropped

Sanitizing works on plain JSON-shaped dicts and returns new dicts; the input is
never modified. Running it twice gives the same result as running it once.
"""
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

_PLAQUE_ID = "text_plaque"
_DEPRECATED_ELEMENT_FIELDS = frozenset({"opacity", "decorations"})
_DEPRECATED_PAGE_FIELDS = frozenset({"decorations", "decoration_config"})


class InvalidLayoutError(ValueError):
    """The layout is missing or not shaped like a layout at all."""


def sanitize_page_layout(layout: Any) -> dict[str, Any]:
    """Return a copy of ``layout`` with all deprecated decoration data removed.

    Raises InvalidLayoutError if ``layout`` is None, not a mapping, or its
    ``elements`` is not a list.
    """
    if layout is None:
        raise InvalidLayoutError("Layout is required")
    if not isinstance(layout, Mapping):
        raise InvalidLayoutError(f"Layout must be a mapping, got {type(layout).__name__}")

    elements = layout.get("elements") or []
    if not isinstance(elements, list):
        raise InvalidLayoutError("Layout elements must be a list")

    clean = {k: v for k, v in layout.items() if k != "decorations"}
    clean["elements"] = [
        el for el in (_sanitize_element(e) for e in elements) if el is not None
    ]
    return clean


def _sanitize_element(element: Any) -> dict[str, Any] | None:
    if not isinstance(element, Mapping):
        raise InvalidLayoutError(f"Layout element must be a mapping, got {type(element).__name__}")

    if element.get("type") == "decoration":
        if element.get("id") != _PLAQUE_ID:
            return None
        element = {**element, "type": "text"}

    return {k: v for k, v in element.items() if k not in _DEPRECATED_ELEMENT_FIELDS}


def sanitize_book_layouts(layouts: Mapping[Any, Any]) -> dict[int, dict[str, Any]]:
    """Sanitize every page layout of a book, skipping pages that fail.

    Keys may be ints or numeric strings (as they come out of JSON). A page that
    cannot be sanitized is logged and left out; the rest of the book proceeds.
    """
    sanitized: dict[int, dict[str, Any]] = {}
    for page_key, layout in layouts.items():
        try:
            page_number = int(page_key)
            sanitized[page_number] = sanitize_page_layout(layout)
        except Exception as exc:
            logger.warning("  [page %s] layout sanitization failed — SKIPPED: %s", page_key, exc)
    return sanitized


def sanitize_story_page(page: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop deprecated decoration references from a raw story page dict."""
    return {k: v for k, v in (page or {}).items() if k not in _DEPRECATED_PAGE_FIELDS}


def has_deprecated_decorations(layout: Any) -> bool:
    if not isinstance(layout, Mapping):
        return False
    if "decorations" in layout:
        return True
    elements = layout.get("elements") or []
    return any(
        isinstance(el, Mapping) and el.get("type") == "decoration" and el.get("id") != _PLAQUE_ID
        for el in elements
    )


def detect_deprecated_content(book_data: Mapping[str, Any]) -> dict[str, Any]:
    """Report which pages of a stored book still carry deprecated decoration data.

    Looks at ``book_data["layouts"]`` (page number → layout) and
    ``book_data["storyData"]["pages"]``.
    """
    affected: set[int] = set()
    kinds: list[str] = []

    for page_key, layout in (book_data.get("layouts") or {}).items():
        if not str(page_key).isdigit():
            continue
        if has_deprecated_decorations(layout):
            affected.add(int(page_key))
            if "decorations" not in kinds:
                kinds.append("decorations")

    story_pages = (book_data.get("storyData") or {}).get("pages") or []
    for index, page in enumerate(story_pages):
        if isinstance(page, Mapping) and _DEPRECATED_PAGE_FIELDS & page.keys():
            affected.add(page.get("page_number") or index + 1)
            if "story_decorations" not in kinds:
                kinds.append("story_decorations")

    return {
        "has_deprecations": bool(affected),
        "affected_pages": sorted(affected),
        "deprecation_types": kinds,
    }
