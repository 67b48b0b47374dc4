"""
Order reads and delivery status updates.

Orders are written by checkout; here they are only listed, read and have
their delivery status changed. Each order item is a copy of the product taken
when the order was placed, so catalog edits and deletions never reach it.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import config
from errors import FieldViolation, IndexOutOfRange, ValidationFailed
from logging_config import get_logger
from schemas import DeliveryStatus, Order, OrderItem, OrderSummary, Product
from stores import DocumentStore

logger = get_logger(__name__)


def parse_delivery_status(value: Union[str, DeliveryStatus]) -> DeliveryStatus:
    """Match a status case-insensitively against the known values."""
    if isinstance(value, DeliveryStatus):
        return value
    text = (value or "").strip().lower()
    for status in DeliveryStatus:
        if status.value.lower() == text:
            return status
    raise ValidationFailed([
        FieldViolation(
            "deliveryStatus",
            f"must be one of {', '.join(s.value for s in DeliveryStatus)}",
        )
    ])


def display_status(value: Optional[str]) -> Optional[str]:
    """Canonical spelling for known statuses; legacy free text passes through."""
    if value is None:
        return None
    try:
        return parse_delivery_status(value).value
    except ValidationFailed:
        return value


def snapshot_item(product: Product, color_index: int, quantity: int = 1) -> OrderItem:
    """
    Copy one colour of a product into an order item.

    The item owns deep copies of every nested value; nothing is shared with
    ``product``.
    """
    if not 0 <= color_index < len(product.colors):
        raise IndexOutOfRange(color_index, len(product.colors))
    color = product.colors[color_index].model_copy(deep=True)
    return OrderItem(
        product_id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        brand=product.brand,
        quantity=quantity,
        colors=[color],
        sizes_inventory=color.model_copy(deep=True).sizes_inventory,
        dimensions=product.dimensions.model_copy(deep=True),
        images=list(color.images),
        tags=list(product.tags),
    )


def order_from_document(doc: Dict[str, Any]) -> Order:
    order = Order.model_validate(doc)
    order.delivery_status = display_status(order.delivery_status)
    return order


class OrderSnapshotReader:

    def __init__(self, documents: DocumentStore, collection: str = config.ORDERS_COLLECTION):
        self.documents = documents
        self.collection = collection

    def list_orders(self, filter_substring: str = "") -> List[OrderSummary]:
        """
        Summaries of all orders whose id or customer name contains
        ``filter_substring`` (case-insensitive). An empty filter returns all.
        """
        needle = (filter_substring or "").strip().lower()
        summaries = []
        for doc in self.documents.query(self.collection):
            order = order_from_document(doc)
            if needle and needle not in order.id.lower() and needle not in (order.name or "").lower():
                continue
            summaries.append(OrderSummary(
                id=order.id,
                name=order.name,
                total_price=order.total_price,
                delivery_status=order.delivery_status,
                created_at=order.created_at,
                item_count=len(order.items),
            ))
        return summaries

    def get_order(self, order_id: str) -> Order:
        return order_from_document(self.documents.get(self.collection, order_id))

    def set_delivery_status(self, order_id: str, new_status: Union[str, DeliveryStatus]) -> Order:
        """Change only the deliveryStatus field of an order."""
        status = parse_delivery_status(new_status)
        self.documents.update(self.collection, order_id, {"deliveryStatus": status.value})
        logger.info(f"Order {order_id} delivery status set to {status.value}")
        return self.get_order(order_id)

    def place(self, order: Order) -> str:
        """Store an order built by checkout and return its id."""
        doc = order.model_dump(by_alias=True, exclude={"id"})
        if doc.get("createdAt") is None:
            doc["createdAt"] = datetime.now(timezone.utc)
        if doc.get("deliveryStatus") is None:
            doc["deliveryStatus"] = DeliveryStatus.PROCESSING.value
        return self.documents.add(self.collection, doc)
