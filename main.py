from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

import config
from categories import CategoryList
from coupons import CouponBook
from database import db
from errors import AssetUploadFailed, ConflictDetected, IndexOutOfRange, NotFound, ValidationFailed
from logging_config import setup_logging
from merger import new_product_template
from orders import OrderSnapshotReader
from repository import CatalogRepository
from schemas import AttachImages, JsonEdit, Product, StagedFile
from stores import BlobStore, DocumentStore, GridFSBlobStore, MongoDocumentStore
from uploader import AssetUploader

setup_logging(config.LOG_LEVEL, config.LOG_DIR)

app = FastAPI(title="Catalog Admin API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Errors ----------

@app.exception_handler(ValidationFailed)
def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=422, content={"detail": [v.to_dict() for v in exc.violations]})

@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(IndexOutOfRange)
def index_out_of_range_handler(request: Request, exc: IndexOutOfRange):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(AssetUploadFailed)
def asset_upload_failed_handler(request: Request, exc: AssetUploadFailed):
    return JSONResponse(status_code=502, content={"detail": str(exc)})

@app.exception_handler(ConflictDetected)
def conflict_handler(request: Request, exc: ConflictDetected):
    return JSONResponse(status_code=409, content={"detail": str(exc), "version": exc.actual})

# ---------- Dependencies ----------

def get_document_store() -> DocumentStore:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return MongoDocumentStore(db)

def get_blob_store() -> BlobStore:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return GridFSBlobStore(db, bucket=config.ASSET_BUCKET, base_url=config.PUBLIC_BASE_URL)

def get_uploader(blobs: BlobStore = Depends(get_blob_store)) -> AssetUploader:
    return AssetUploader(blobs)

def get_catalog(documents: DocumentStore = Depends(get_document_store), uploader: AssetUploader = Depends(get_uploader)) -> CatalogRepository:
    return CatalogRepository(documents, uploader)

def get_orders(documents: DocumentStore = Depends(get_document_store)) -> OrderSnapshotReader:
    return OrderSnapshotReader(documents)

def get_categories(documents: DocumentStore = Depends(get_document_store)) -> CategoryList:
    return CategoryList(documents)

def get_coupons(documents: DocumentStore = Depends(get_document_store)) -> CouponBook:
    return CouponBook(documents)

def require_admin(x_admin_key: Optional[str] = Header(default=None)):
    admin_key = config.ADMIN_API_KEY
    if not admin_key:
        # If not set, allow for development convenience
        return True
    if x_admin_key != admin_key:
        raise HTTPException(status_code=401, detail="Invalid admin key")
    return True

# ---------- Health ----------

@app.get("/")
def root():
    return {"message": "Catalog Admin API running"}

@app.get("/test")
def test_database():
    resp = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if config.DATABASE_URL else "❌ Not Set",
        "database_name": "❌ Not Set",
        "collections": []
    }
    try:
        if db is not None:
            resp["database"] = "✅ Connected"
            resp["database_name"] = db.name
            resp["collections"] = db.list_collection_names()
    except Exception as e:
        resp["database"] = f"⚠️ {str(e)[:80]}"
    return resp

# ---------- Seed Data ----------

SAMPLE_PRODUCT = {
    "name": "Kids T-Shirt",
    "description": "Stylish t-shirt for kids",
    "price": 599.99,
    "sku": "KIDS001",
    "brand": "Brand A",
    "weight": 200,
    "dimensions": {"length": 25, "width": 15, "height": 5},
    "tags": ["Kids Wear", "Tops", "Unisex", "Summer Collection", "New Arrival"],
    "colors": [
        {
            "color_name": "Red",
            "hex_code": "#FF0000",
            "images": [],
            "sizes_inventory": {
                "XS": {"inventory": 10, "price": 599.99},
                "S": {"inventory": 15, "price": 599.99},
                "M": {"inventory": 20, "price": 599.99},
            },
        },
        {
            "color_name": "Blue",
            "hex_code": "#0000FF",
            "images": [],
            "sizes_inventory": {
                "XS": {"inventory": 5, "price": 649.99},
                "S": {"inventory": 10, "price": 649.99},
                "M": {"inventory": 8, "price": 649.99},
                "L": {"inventory": 4, "price": 649.99},
            },
        },
    ],
}

class SeedRequest(BaseModel):
    force: bool = False

@app.post("/api/seed")
def seed(req: SeedRequest, catalog: CatalogRepository = Depends(get_catalog), categories: CategoryList = Depends(get_categories), _=Depends(require_admin)):
    existing_products = catalog.list()
    if not req.force and existing_products:
        return {"status": "ok", "message": "Already seeded"}

    for old in existing_products:
        catalog.delete(old.id)

    product = catalog.create(Product.model_validate(SAMPLE_PRODUCT))
    existing = categories.names()
    for tag in product.tags:
        if tag not in existing:
            categories.add(tag)
    return {"status": "ok", "seeded": 1, "id": product.id}

# ---------- Products ----------

class UpdateProductRequest(BaseModel):
    edits: List[JsonEdit] = Field(default_factory=list)
    expected_version: Optional[int] = None

class GalleryProductRequest(BaseModel):
    product: Product
    images: List[str]

@app.get("/api/products")
def list_products(catalog: CatalogRepository = Depends(get_catalog)):
    return catalog.list()

@app.get("/api/products/template")
def product_template():
    return new_product_template()

@app.post("/api/products", status_code=201)
def create_product(payload: Product, catalog: CatalogRepository = Depends(get_catalog), _=Depends(require_admin)):
    return catalog.create(payload)

@app.post("/api/products/gallery", status_code=201)
def create_product_from_gallery(payload: GalleryProductRequest, catalog: CatalogRepository = Depends(get_catalog), _=Depends(require_admin)):
    return catalog.create_from_gallery(payload.product, payload.images)

@app.get("/api/products/{product_id}")
def get_product(product_id: str, catalog: CatalogRepository = Depends(get_catalog)):
    return catalog.get(product_id)

@app.patch("/api/products/{product_id}")
def update_product(product_id: str, payload: UpdateProductRequest, catalog: CatalogRepository = Depends(get_catalog), _=Depends(require_admin)):
    return catalog.update(product_id, payload.edits, expected_version=payload.expected_version)

@app.post("/api/products/{product_id}/colors/{index}/images")
def upload_color_images(
    product_id: str,
    index: int,
    files: List[UploadFile] = File(...),
    expected_version: Optional[int] = Form(None),
    catalog: CatalogRepository = Depends(get_catalog),
    _=Depends(require_admin),
):
    staged = [
        StagedFile(filename=f.filename or "upload", content=f.file.read(), content_type=f.content_type)
        for f in files
    ]
    return catalog.update(product_id, [AttachImages(index=index, files=staged)], expected_version=expected_version)

@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, catalog: CatalogRepository = Depends(get_catalog), _=Depends(require_admin)):
    catalog.delete(product_id)
    return {"deleted": True}

# ---------- Gallery / Assets ----------

@app.get("/api/gallery")
def list_gallery(uploader: AssetUploader = Depends(get_uploader)):
    return uploader.gallery()

@app.post("/api/gallery", status_code=201)
def upload_to_gallery(file: UploadFile = File(...), uploader: AssetUploader = Depends(get_uploader), _=Depends(require_admin)):
    url = uploader.upload(file.file.read(), file.filename, file.content_type, prefix=config.GALLERY_PREFIX)
    return {"url": url}

@app.get("/api/assets/{key:path}")
def get_asset(key: str, blobs: BlobStore = Depends(get_blob_store)):
    data, content_type = blobs.open(key)
    return Response(content=data, media_type=content_type or "application/octet-stream")

# ---------- Categories ----------

class CategoryRequest(BaseModel):
    name: str

@app.get("/api/categories")
def list_categories(categories: CategoryList = Depends(get_categories)):
    return categories.names()

@app.post("/api/categories", status_code=201)
def add_category(req: CategoryRequest, categories: CategoryList = Depends(get_categories), _=Depends(require_admin)):
    return categories.add(req.name)

@app.put("/api/categories/{index}")
def rename_category(index: int, req: CategoryRequest, categories: CategoryList = Depends(get_categories), _=Depends(require_admin)):
    return categories.rename(index, req.name)

@app.delete("/api/categories/{name}")
def delete_category(name: str, categories: CategoryList = Depends(get_categories), _=Depends(require_admin)):
    return categories.remove(name)

# ---------- Coupons ----------

class CouponRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    discount: float
    valid_until: date = Field(..., alias="validUntil")

@app.get("/api/coupons")
def list_coupons(coupons: CouponBook = Depends(get_coupons)):
    return coupons.list()

@app.post("/api/coupons", status_code=201)
def add_coupon(req: CouponRequest, coupons: CouponBook = Depends(get_coupons), _=Depends(require_admin)):
    return coupons.add(req.code, req.discount, req.valid_until)

@app.delete("/api/coupons/{coupon_id}")
def delete_coupon(coupon_id: str, coupons: CouponBook = Depends(get_coupons), _=Depends(require_admin)):
    coupons.delete(coupon_id)
    return {"deleted": True}

# ---------- Orders ----------

class DeliveryStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    delivery_status: str = Field(..., alias="deliveryStatus")

@app.get("/api/orders")
def list_orders(q: str = Query("", description="Order id or customer name"), orders: OrderSnapshotReader = Depends(get_orders), _=Depends(require_admin)):
    return orders.list_orders(q)

@app.get("/api/orders/{order_id}")
def get_order(order_id: str, orders: OrderSnapshotReader = Depends(get_orders), _=Depends(require_admin)):
    return orders.get_order(order_id)

@app.patch("/api/orders/{order_id}/status")
def set_order_status(order_id: str, req: DeliveryStatusRequest, orders: OrderSnapshotReader = Depends(get_orders), _=Depends(require_admin)):
    return orders.set_delivery_status(order_id, req.delivery_status)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
