"""
Category list

All category names live in one document as an ordered list. The document is
created on the first add. Names are not required to be unique, and product
tags are not updated when a name is renamed or removed.
"""
from typing import List, Optional

import config
from errors import FieldViolation, IndexOutOfRange, ValidationFailed
from logging_config import get_logger
from schemas import Category
from stores import DocumentStore

logger = get_logger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailed([FieldViolation("name", "Category name cannot be empty")])
    return cleaned


class CategoryList:

    def __init__(self, documents: DocumentStore, collection: str = config.CATEGORY_COLLECTION):
        self.documents = documents
        self.collection = collection

    def _load(self) -> Optional[Category]:
        docs = self.documents.query(self.collection)
        if not docs:
            return None
        # Only the first document is used if more than one was ever created.
        return Category.model_validate(docs[0])

    def names(self) -> List[str]:
        category = self._load()
        return list(category.name) if category else []

    def _save(self, category: Category, names: List[str]) -> List[str]:
        self.documents.update(self.collection, category.id, {"name": names})
        return names

    def add(self, name: str) -> List[str]:
        name = _clean_name(name)
        category = self._load()
        if category is None:
            self.documents.add(self.collection, {"name": [name]})
            logger.info(f"Created category list with {name!r}")
            return [name]
        logger.info(f"Added category {name!r}")
        return self._save(category, category.name + [name])

    def rename(self, index: int, name: str) -> List[str]:
        name = _clean_name(name)
        category = self._load()
        names = list(category.name) if category else []
        if not 0 <= index < len(names):
            raise IndexOutOfRange(index, len(names))
        names[index] = name
        logger.info(f"Renamed category #{index} to {name!r}")
        return self._save(category, names)

    def remove(self, name: str) -> List[str]:
        """Remove every entry equal to ``name``; unknown names are a no-op."""
        category = self._load()
        if category is None:
            return []
        names = [n for n in category.name if n != name]
        if len(names) == len(category.name):
            return names
        logger.info(f"Removed category {name!r}")
        return self._save(category, names)
