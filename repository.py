"""
Catalog repository

Runs the read-merge-validate-upload-write cycle for one product at a time.
Nothing is written until validation passed and every staged image has a URL,
so a failed create leaves no document behind and a failed update leaves the
previously committed document as it was.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import config
from errors import ConflictDetected
from logging_config import get_logger
from merger import append_images, apply_edits, new_product_template
from schemas import Product, StagedFile
from stores import DocumentStore
from uploader import AssetUploader
from validation import ensure_valid, validate_gallery_selection

logger = get_logger(__name__)


def product_to_document(product: Product) -> Dict[str, Any]:
    return product.model_dump(exclude={"id"})


def product_from_document(doc: Dict[str, Any]) -> Product:
    data = dict(doc)
    data.pop("created_at", None)
    data.pop("updated_at", None)
    return Product.model_validate(data)


class CatalogRepository:

    def __init__(self, documents: DocumentStore, uploader: AssetUploader, collection: str = config.PRODUCTS_COLLECTION):
        self.documents = documents
        self.uploader = uploader
        self.collection = collection

    def get(self, product_id: str) -> Product:
        return product_from_document(self.documents.get(self.collection, product_id))

    def list(self) -> List[Product]:
        return [product_from_document(d) for d in self.documents.query(self.collection)]

    def create(self, product: Product, staged: Optional[Sequence[Sequence[StagedFile]]] = None) -> Product:
        """
        Validate, upload staged images and write a new product document.

        Args:
            product: Draft product; any ``id`` or ``version`` on it is ignored.
            staged: Files to upload per colour, aligned with ``product.colors``.

        Returns:
            Product: The stored product with its new id.

        Raises:
            ValidationFailed, AssetUploadFailed
        """
        merged = apply_edits(product, [], staged=[list(s) for s in (staged or [])])
        valid = ensure_valid(merged.product)

        if merged.has_staged():
            valid = append_images(valid, self.uploader.upload_staged(merged.staged))

        valid.id = None
        valid.version = 1
        valid.date_added = valid.date_added or datetime.now(timezone.utc)
        new_id = self.documents.add(self.collection, product_to_document(valid))
        valid.id = new_id
        logger.info(f"Created product {new_id} ({valid.name!r}, {len(valid.colors)} colours)")
        return valid

    def create_from_gallery(self, product: Product, selected_urls: Sequence[str]) -> Product:
        """
        Create a product from 3 to 5 images picked in the shared gallery.

        The picked images go to the product's first colour; a default colour
        is added when the draft has none.
        """
        selected = validate_gallery_selection(selected_urls)
        draft = product.model_copy(deep=True)
        if not draft.colors:
            draft.colors = new_product_template().colors
        draft.colors[0].images.extend(url for url in selected if url not in draft.colors[0].images)
        return self.create(draft)

    def update(self, product_id: str, edits: Sequence[Any], expected_version: Optional[int] = None) -> Product:
        """
        Apply ``edits`` to the stored product and write the merged document.

        The write is a compare-and-swap on the document version: if another
        writer committed since the read (or since ``expected_version``, when
        given), ConflictDetected is raised and nothing is written.

        Raises:
            NotFound, IndexOutOfRange, ValidationFailed, AssetUploadFailed,
            ConflictDetected
        """
        current = self.get(product_id)
        if expected_version is not None and current.version != expected_version:
            raise ConflictDetected(product_id, expected_version, current.version)

        merged = apply_edits(current, edits)
        valid = ensure_valid(merged.product)

        if merged.has_staged():
            valid = append_images(valid, self.uploader.upload_staged(merged.staged))

        valid.id = product_id
        valid.version = current.version + 1
        self.documents.set(self.collection, product_id, product_to_document(valid), expected_version=current.version)
        logger.info(f"Updated product {product_id} to version {valid.version} ({len(edits)} edits)")
        return valid

    def delete(self, product_id: str) -> None:
        # Images stay in the blob store; orders may still point at them.
        self.documents.delete(self.collection, product_id)
        logger.info(f"Deleted product {product_id}")
