import pytest

from orders import OrderSnapshotReader
from repository import CatalogRepository
from schemas import Product
from stores import MemoryBlobStore, MemoryDocumentStore
from uploader import AssetUploader


class FailingBlobStore(MemoryBlobStore):
    """Blob store whose writes always fail, as if the storage backend was down."""

    def put(self, key, data, content_type=None):
        raise OSError("storage unavailable")


def product_data(**overrides):
    data = {
        "name": "Red Shirt",
        "description": "Cotton shirt",
        "price": 19.99,
        "sku": "RS-001",
        "brand": "Acme",
        "tags": ["Tops"],
        "dimensions": {"length": 10, "width": 20, "height": 30},
        "colors": [
            {
                "color_name": "Red",
                "hex_code": "#FF0000",
                "images": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"],
                "sizes_inventory": {
                    "M": {"inventory": 10, "price": 19.99},
                    "L": {"inventory": 5, "price": 19.99},
                },
            }
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_product():
    def _make(**overrides):
        return Product.model_validate(product_data(**overrides))
    return _make


@pytest.fixture
def documents():
    return MemoryDocumentStore()


@pytest.fixture
def blobs():
    return MemoryBlobStore()


@pytest.fixture
def uploader(blobs):
    return AssetUploader(blobs, prefix="products/", max_workers=2)


@pytest.fixture
def catalog(documents, uploader):
    return CatalogRepository(documents, uploader)


@pytest.fixture
def failing_catalog(documents):
    return CatalogRepository(documents, AssetUploader(FailingBlobStore()))


@pytest.fixture
def orders(documents):
    return OrderSnapshotReader(documents)
