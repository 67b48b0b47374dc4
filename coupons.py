"""
Discount coupons, one document per coupon.

``validUntil`` is stored as a UTC-midnight timestamp and read back as a date.
"""
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Union

import config
from errors import FieldViolation, ValidationFailed
from logging_config import get_logger
from schemas import Coupon
from stores import DocumentStore

logger = get_logger(__name__)


def date_to_timestamp(value: date) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time(0, 0), tzinfo=timezone.utc)


def timestamp_to_date(value: Union[datetime, date, str]) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def coupon_from_document(doc: Dict[str, Any]) -> Coupon:
    data = dict(doc)
    data["validUntil"] = timestamp_to_date(data.get("validUntil"))
    return Coupon.model_validate(data)


class CouponBook:

    def __init__(self, documents: DocumentStore, collection: str = config.COUPONS_COLLECTION):
        self.documents = documents
        self.collection = collection

    def list(self) -> List[Coupon]:
        return [coupon_from_document(d) for d in self.documents.query(self.collection)]

    def add(self, code: str, discount: Union[int, float, str], valid_until: Union[date, str]) -> Coupon:
        violations = []
        code = (code or "").strip()
        if not code:
            violations.append(FieldViolation("code", "is required"))
        try:
            discount = float(discount)
            if not 0 <= discount <= 100:
                violations.append(FieldViolation("discount", "must be between 0 and 100"))
        except (TypeError, ValueError):
            violations.append(FieldViolation("discount", "must be a number"))
        try:
            valid_until = timestamp_to_date(valid_until)
        except (TypeError, ValueError):
            violations.append(FieldViolation("validUntil", "must be a date (YYYY-MM-DD)"))
        if violations:
            raise ValidationFailed(violations)

        coupon_id = self.documents.add(self.collection, {
            "code": code,
            "discount": discount,
            "validUntil": date_to_timestamp(valid_until),
        })
        logger.info(f"Added coupon {code!r} ({discount}% until {valid_until.isoformat()})")
        return Coupon(id=coupon_id, code=code, discount=discount, valid_until=valid_until)

    def delete(self, coupon_id: str) -> None:
        self.documents.delete(self.collection, coupon_id)
        logger.info(f"Deleted coupon {coupon_id}")
