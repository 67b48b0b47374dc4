"""
Database connection

Opens the MongoDB client from DATABASE_URL / DATABASE_NAME. ``db`` stays None
when the service is started without a database, so the API can report it
instead of failing at import time.
"""
from typing import Optional

from pymongo import MongoClient

import config
from logging_config import get_logger

logger = get_logger(__name__)

client: Optional[MongoClient] = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]
    logger.info(f"MongoDB client created for database '{config.DATABASE_NAME}'")
else:
    logger.warning("DATABASE_URL / DATABASE_NAME not set; database unavailable")
