"""
Catalog errors

Raised by the catalog core and left for the caller to present. The API
layer maps each one to an HTTP status in main.py.
"""
from typing import List, Optional


class CatalogError(Exception):
    """Base class for catalog failures."""


class FieldViolation:
    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message

    def to_dict(self) -> dict:
        return {"path": self.path, "message": self.message}

    def __eq__(self, other):
        if not isinstance(other, FieldViolation):
            return NotImplemented
        return (self.path, self.message) == (other.path, other.message)

    def __repr__(self):
        return f"FieldViolation({self.path!r}, {self.message!r})"


class ValidationFailed(CatalogError):
    def __init__(self, violations: List[FieldViolation]):
        self.violations = list(violations)
        summary = "; ".join(f"{v.path}: {v.message}" for v in self.violations)
        super().__init__(f"Validation failed: {summary}")

    @property
    def paths(self) -> List[str]:
        return [v.path for v in self.violations]


class NotFound(CatalogError):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection} document not found: {doc_id}")


class AssetUploadFailed(CatalogError):
    def __init__(self, cause: Exception, name: Optional[str] = None):
        self.cause = cause
        self.name = name
        target = f" ({name})" if name else ""
        super().__init__(f"Asset upload failed{target}: {cause}")


class IndexOutOfRange(CatalogError):
    def __init__(self, index: int, size: Optional[int] = None):
        self.index = index
        self.size = size
        bound = f" (have {size})" if size is not None else ""
        super().__init__(f"Index out of range: {index}{bound}")


class ConflictDetected(CatalogError):
    def __init__(self, doc_id: str, expected: Optional[int] = None, actual: Optional[int] = None):
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Document {doc_id} changed concurrently (expected version {expected}, found {actual})"
        )
