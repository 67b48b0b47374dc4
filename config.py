"""
Service configuration read from the environment.
"""
import os

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# Collections
PRODUCTS_COLLECTION = os.getenv("PRODUCTS_COLLECTION", "products")
ORDERS_COLLECTION = os.getenv("ORDERS_COLLECTION", "orders")
CATEGORY_COLLECTION = os.getenv("CATEGORY_COLLECTION", "category")
COUPONS_COLLECTION = os.getenv("COUPONS_COLLECTION", "coupons")

# Assets
ASSET_BUCKET = os.getenv("ASSET_BUCKET", "assets")
ASSET_PREFIX = os.getenv("ASSET_PREFIX", "products/")
GALLERY_PREFIX = os.getenv("GALLERY_PREFIX", "uploadedImages/")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "/api/assets")
UPLOAD_WORKERS = int(os.getenv("UPLOAD_WORKERS", "4"))

# Legacy gallery selection bounds
GALLERY_MIN_IMAGES = 3
GALLERY_MAX_IMAGES = 5

ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR")

PORT = int(os.getenv("PORT", 8000))
