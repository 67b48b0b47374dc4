"""
Variant merging

Applies a list of edit operations to a product without touching anything the
edits do not name. The caller's product is never modified: edits run against a
deep copy, so a failing edit leaves the original exactly as it was.

Image uploads are not performed here. ``attach_images`` only stages files; the
staging lists travel with their variant (removing an earlier variant does not
shift files onto the wrong colour) and are resolved to URLs later by the
uploader, whose results are appended with ``append_images``.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import TypeAdapter

from errors import FieldViolation, IndexOutOfRange, ValidationFailed
from logging_config import get_logger
from schemas import (
    AddVariant,
    AttachImages,
    ColorVariant,
    DisableSize,
    Edit,
    EnableSize,
    Product,
    RemoveVariant,
    SetField,
    SetSizeField,
    SetVariantField,
    SizeStock,
    StagedFile,
)

logger = get_logger(__name__)

_edit_adapter = TypeAdapter(Edit)

TEXT_FIELDS = ("name", "description", "sku", "brand")
NUMBER_FIELDS = ("price", "weight")
DIMENSION_FIELDS = ("length", "width", "height")


@dataclass
class MergeResult:
    """
    Outcome of `apply_edits`.

    Attributes:
        product: The edited copy.
        staged: Files waiting for upload, one list per colour in
            ``product.colors`` (same order).
    """

    product: Product
    staged: List[List[StagedFile]] = field(default_factory=list)

    def has_staged(self) -> bool:
        return any(self.staged)


def new_product_template() -> Product:
    """A blank draft with the single default colour the editor starts from."""
    return Product(colors=[ColorVariant()])


def parse_tags(value: Union[str, Iterable[str], None]) -> List[str]:
    """Accept a list or comma separated text; drop blanks and repeats."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    tags: List[str] = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _variant(product: Product, index: int) -> ColorVariant:
    if not 0 <= index < len(product.colors):
        raise IndexOutOfRange(index, len(product.colors))
    return product.colors[index]


def _set_field(product: Product, staged: List[List[StagedFile]], edit: SetField) -> None:
    path = edit.path
    if path in TEXT_FIELDS:
        setattr(product, path, "" if edit.value is None else str(edit.value))
    elif path in NUMBER_FIELDS:
        if path == "price" and edit.value is None:
            setattr(product, path, "")
        else:
            setattr(product, path, edit.value)
    elif path == "tags":
        product.tags = parse_tags(edit.value)
    elif path.startswith("dimensions.") and path.split(".", 1)[1] in DIMENSION_FIELDS:
        value = "" if edit.value is None else edit.value
        setattr(product.dimensions, path.split(".", 1)[1], value)
    else:
        raise ValidationFailed([FieldViolation(path, "unknown or read-only field")])


def _add_variant(product: Product, staged: List[List[StagedFile]], edit: AddVariant) -> None:
    product.colors.append(ColorVariant())
    staged.append([])


def _remove_variant(product: Product, staged: List[List[StagedFile]], edit: RemoveVariant) -> None:
    _variant(product, edit.index)
    product.colors.pop(edit.index)
    staged.pop(edit.index)


def _set_variant_field(product: Product, staged: List[List[StagedFile]], edit: SetVariantField) -> None:
    setattr(_variant(product, edit.index), edit.field, edit.value)


def _enable_size(product: Product, staged: List[List[StagedFile]], edit: EnableSize) -> None:
    sizes = _variant(product, edit.index).sizes_inventory
    if edit.size not in sizes:
        sizes[edit.size] = SizeStock()


def _disable_size(product: Product, staged: List[List[StagedFile]], edit: DisableSize) -> None:
    _variant(product, edit.index).sizes_inventory.pop(edit.size, None)


def _set_size_field(product: Product, staged: List[List[StagedFile]], edit: SetSizeField) -> None:
    sizes = _variant(product, edit.index).sizes_inventory
    # A size that was never enabled is created on first write.
    stock = sizes.setdefault(edit.size, SizeStock())
    setattr(stock, edit.field, edit.value)


def _attach_images(product: Product, staged: List[List[StagedFile]], edit: AttachImages) -> None:
    _variant(product, edit.index)
    staged[edit.index].extend(edit.files)


_HANDLERS: Dict[str, Callable[[Product, List[List[StagedFile]], Any], None]] = {
    "set_field": _set_field,
    "add_variant": _add_variant,
    "remove_variant": _remove_variant,
    "set_variant_field": _set_variant_field,
    "enable_size": _enable_size,
    "disable_size": _disable_size,
    "set_size_field": _set_size_field,
    "attach_images": _attach_images,
}


def apply_edits(
    product: Product,
    edits: Sequence[Union[Edit, Dict[str, Any]]],
    staged: Optional[List[List[StagedFile]]] = None,
) -> MergeResult:
    """
    Apply ``edits`` in order to a copy of ``product``.

    Later edits to the same path win. Raises IndexOutOfRange for a colour
    index that does not exist at the time the edit runs, or when ``staged``
    holds more lists than the product has colours, and ValidationFailed
    for an unknown ``set_field`` path.

    Args:
        product: Current product; not modified.
        edits: Edit models, or dicts carrying an "op" key.
        staged: Files already staged for each colour, if any.

    Returns:
        MergeResult with the edited product and per-colour staged files.
    """
    working = product.model_copy(deep=True)
    pending = [list(files) for files in (staged or [])]
    if len(pending) > len(working.colors):
        # Every staged list needs a colour to attach to.
        raise IndexOutOfRange(len(working.colors), len(working.colors))
    pending.extend([] for _ in range(len(working.colors) - len(pending)))

    for raw in edits:
        edit = _edit_adapter.validate_python(raw) if isinstance(raw, dict) else raw
        logger.debug(f"Applying {edit.op} to product {product.id or '<new>'}")
        _HANDLERS[edit.op](working, pending, edit)

    return MergeResult(product=working, staged=pending)


def append_images(product: Product, urls_by_variant: Sequence[Sequence[str]]) -> Product:
    """
    Add uploaded image URLs after each colour's existing images.

    ``urls_by_variant`` is aligned with ``product.colors``. Existing images
    are kept in place; nothing is ever replaced.
    """
    merged = product.model_copy(deep=True)
    for color, urls in zip(merged.colors, urls_by_variant):
        color.images.extend(url for url in urls if url not in color.images)
    return merged
