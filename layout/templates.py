"""Template catalog — named, read-only layout templates.

Templates live in ``templates.yaml`` next to this module and are parsed once
per process. Lookups never fail: an unknown name resolves to ``hero_spread``.
"""
import logging
from functools import lru_cache
from pathlib import Path

import yaml

from models.layout import LayoutTemplate

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "hero_spread"

_CATALOG_PATH = Path(__file__).resolve().parent / "templates.yaml"

# Camera angle → canonical shot
_SHOT_ALIASES = {
    "wide": "wide",
    "medium": "medium",
    "closeup": "closeup",
    "close up": "closeup",
    "birdseye": "birdseye",
    "bird's eye": "birdseye",
    "birds eye": "birdseye",
    "low": "low",
}

_SHOT_TEMPLATES = {
    "wide": "hero_spread",
    "medium": "action_focus",
    "closeup": "portrait_emphasis",
    "birdseye": "collage",
    "low": "hero_spread",
}


def load_catalog(path: Path) -> dict[str, LayoutTemplate]:
    """Parse a catalog file into validated templates keyed by template name.

    Raises FileNotFoundError if path does not exist.
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return {key: LayoutTemplate.model_validate(entry) for key, entry in data.items()}


@lru_cache(maxsize=1)
def _catalog() -> dict[str, LayoutTemplate]:
    catalog = load_catalog(_CATALOG_PATH)
    logger.debug("Loaded %d layout templates from %s", len(catalog), _CATALOG_PATH)
    return catalog


def template_names() -> list[str]:
    return sorted(_catalog())


def has_template(name: str | None) -> bool:
    return bool(name) and name in _catalog()


def resolve_template(name: str | None) -> LayoutTemplate:
    """Look up a template by key, falling back to ``hero_spread`` for unknown names."""
    catalog = _catalog()
    if name and name in catalog:
        return catalog[name]
    logger.debug("Unknown layout template %r — using %s", name, DEFAULT_TEMPLATE)
    return catalog[DEFAULT_TEMPLATE]


def canonical_shot(camera_angle: str | None, fallback: str = "medium") -> str:
    if not camera_angle:
        return fallback
    key = camera_angle.lower().strip().replace("_", " ").replace("-", " ")
    key = " ".join(key.split())
    return _SHOT_ALIASES.get(key, fallback)


def template_for_shot(camera_angle: str | None, default: str = DEFAULT_TEMPLATE) -> str:
    """Template key for a camera angle; ``default`` when the angle is unknown or absent."""
    if not camera_angle:
        return default
    shot = canonical_shot(camera_angle, fallback="")
    return _SHOT_TEMPLATES.get(shot, default)
