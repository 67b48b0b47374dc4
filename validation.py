"""
Product validation and normalization.

Drafts may hold text and empty placeholders in numeric fields. A final
submission must have every placeholder filled in, and is normalized to
numbers before it is written.
"""
import math
import re
from decimal import Decimal
from typing import Any, List, Optional, Sequence

import config
from errors import FieldViolation, ValidationFailed
from merger import DIMENSION_FIELDS
from schemas import SIZE_LABELS, Product

HEX_RE = re.compile(r"^(?:[0-9A-F]{3}|[0-9A-F]{6})$")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value: Any) -> float:
    """Parse a decimal given as number or text. Raises ValueError."""
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        number = float(value.strip())
    else:
        raise ValueError(f"Not a number: {value!r}")
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def parse_count(value: Any) -> int:
    """Parse a whole number given as number or text. Raises ValueError."""
    if isinstance(value, bool):
        raise ValueError(f"Not an integer: {value!r}")
    if isinstance(value, int):
        return value
    number = parse_number(value)
    if not number.is_integer():
        raise ValueError(f"Not an integer: {value!r}")
    return int(number)


def normalize_hex_code(raw: Optional[str]) -> Optional[str]:
    """
    Normalise HEX values to the `#RRGGBB` format.

    Accepts values with/without leading '#' and the 3-digit short form,
    returns ``None`` for empty input. Raises ValueError for anything else.
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    if value.startswith("#"):
        value = value[1:]
    value = value.upper()
    if not HEX_RE.fullmatch(value):
        raise ValueError(f"Invalid HEX colour value: {raw!r}")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    return f"#{value}"


def _check_positive(violations: List[FieldViolation], path: str, value: Any, required: bool) -> None:
    if is_blank(value):
        if required:
            violations.append(FieldViolation(path, "is required"))
        return
    try:
        number = parse_number(value)
    except ValueError:
        violations.append(FieldViolation(path, "must be a number"))
        return
    if number <= 0:
        violations.append(FieldViolation(path, "must be greater than 0"))


def validate_product(product: Product, final: bool = True) -> List[FieldViolation]:
    """
    Check a product and return every violation found (empty when valid).

    With ``final`` the product is about to be committed: empty placeholders
    are errors and at least one colour variant is required.
    """
    violations: List[FieldViolation] = []

    _check_positive(violations, "price", product.price, required=final)
    if product.weight is not None:
        _check_positive(violations, "weight", product.weight, required=False)
    for dim in DIMENSION_FIELDS:
        _check_positive(violations, f"dimensions.{dim}", getattr(product.dimensions, dim), required=final)

    if final and not product.colors:
        violations.append(FieldViolation("colors", "at least one colour variant is required"))

    for i, color in enumerate(product.colors):
        try:
            normalize_hex_code(color.hex_code)
        except ValueError:
            violations.append(FieldViolation(f"colors[{i}].hex_code", "must be a hex colour like #FF0000"))

        for size, stock in color.sizes_inventory.items():
            base = f"colors[{i}].sizes_inventory.{size}"
            if size not in SIZE_LABELS:
                violations.append(FieldViolation(base, "unknown size"))
                continue
            if is_blank(stock.inventory):
                if final:
                    violations.append(FieldViolation(f"{base}.inventory", "is required"))
            else:
                try:
                    if parse_count(stock.inventory) < 0:
                        violations.append(FieldViolation(f"{base}.inventory", "must not be negative"))
                except ValueError:
                    violations.append(FieldViolation(f"{base}.inventory", "must be a whole number"))
            _check_positive(violations, f"{base}.price", stock.price, required=final)

    return violations


def normalize_product(product: Product) -> Product:
    """
    Return a copy with numeric text converted to numbers and sizes listed
    XS to XXXL. Text fields such as hex codes and tags are kept as entered.

    Expects a product that passed `validate_product`; blank placeholders
    are left as they are.
    """
    out = product.model_copy(deep=True)
    if not is_blank(out.price):
        out.price = parse_number(out.price)
    out.weight = None if is_blank(out.weight) else parse_number(out.weight)
    for dim in DIMENSION_FIELDS:
        value = getattr(out.dimensions, dim)
        if not is_blank(value):
            setattr(out.dimensions, dim, parse_number(value))

    for color in out.colors:
        ordered = {}
        for size in SIZE_LABELS:
            stock = color.sizes_inventory.get(size)
            if stock is None:
                continue
            if not is_blank(stock.inventory):
                stock.inventory = parse_count(stock.inventory)
            if not is_blank(stock.price):
                stock.price = parse_number(stock.price)
            ordered[size] = stock
        color.sizes_inventory = ordered
    return out


def ensure_valid(product: Product, final: bool = True) -> Product:
    """Validate and normalize, raising ValidationFailed with every violation."""
    violations = validate_product(product, final=final)
    if violations:
        raise ValidationFailed(violations)
    return normalize_product(product)


def validate_gallery_selection(urls: Sequence[str]) -> List[str]:
    """Check a gallery pick for the legacy creation path (3 to 5 distinct images)."""
    selected: List[str] = []
    for url in urls:
        if url and url not in selected:
            selected.append(url)
    if not config.GALLERY_MIN_IMAGES <= len(selected) <= config.GALLERY_MAX_IMAGES:
        raise ValidationFailed([
            FieldViolation(
                "images",
                f"select between {config.GALLERY_MIN_IMAGES} and {config.GALLERY_MAX_IMAGES} images",
            )
        ])
    return selected
