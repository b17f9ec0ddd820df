"""
JSON content catalog.

A catalog file holds three top-level lists: ``modules``, ``lessons`` and
``items``, each entry in the dict form of the matching domain record.
Without an explicit path the bundled bartending seed catalog is loaded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from mixmind.domain import Item, Lesson, Module

SEED_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "seed_catalog.json"


class CatalogError(ValueError):
    """Raised when a catalog file cannot be parsed into domain records."""


@dataclass
class ContentCatalog:
    """In-memory curriculum keyed by id."""

    modules: dict[str, Module] = field(default_factory=dict)
    lessons: dict[str, Lesson] = field(default_factory=dict)
    items: dict[str, Item] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ContentCatalog:
        try:
            modules = [Module.from_dict(m) for m in data.get("modules", [])]
            lessons = [Lesson.from_dict(lesson) for lesson in data.get("lessons", [])]
            items = [Item.from_dict(i) for i in data.get("items", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Invalid catalog entry: {e}") from e

        catalog = cls(
            modules={m.id: m for m in modules},
            lessons={lesson.id: lesson for lesson in lessons},
            items={i.id: i for i in items},
        )
        catalog._warn_dangling_references()
        return catalog

    def to_dict(self) -> dict:
        return {
            "modules": [m.to_dict() for m in self.modules.values()],
            "lessons": [lesson.to_dict() for lesson in self.lessons.values()],
            "items": [i.to_dict() for i in self.items.values()],
        }

    def _warn_dangling_references(self) -> None:
        for module in self.modules.values():
            missing = [lid for lid in module.lesson_ids if lid not in self.lessons]
            if missing:
                logger.warning(f"Module {module.id} lists unknown lessons: {missing}")
        for lesson in self.lessons.values():
            missing = [iid for iid in lesson.item_ids if iid not in self.items]
            if missing:
                logger.warning(f"Lesson {lesson.id} lists unknown items: {missing}")


def load_catalog(path: str | Path | None = None) -> ContentCatalog:
    """
    Load a content catalog from JSON.

    Args:
        path: Catalog file (bundled seed catalog if None)

    Returns:
        Parsed ContentCatalog

    Raises:
        FileNotFoundError: If the file does not exist
        CatalogError: If the file is not a valid catalog
    """
    catalog_path = Path(path) if path is not None else SEED_CATALOG_PATH

    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogError(f"{catalog_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"{catalog_path} must contain a JSON object")

    catalog = ContentCatalog.from_dict(data)
    logger.debug(
        f"Loaded catalog {catalog_path.name}: {len(catalog.modules)} modules, "
        f"{len(catalog.lessons)} lessons, {len(catalog.items)} items"
    )
    return catalog
