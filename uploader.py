"""
Asset uploads to the blob store.
"""
import os
import re
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import config
from errors import AssetUploadFailed
from logging_config import get_logger
from schemas import StagedFile
from stores import BlobStore

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(name: Optional[str]) -> str:
    base = os.path.basename((name or "").replace("\\", "/"))
    base = _UNSAFE_CHARS.sub("_", base).strip("._")
    return base or "upload"


class AssetUploader:
    """
    Writes raw files to the blob store and hands back retrieval URLs.

    Every key gets a random token in front of the file name, so two uploads
    of "front.jpg" never collide and nothing already stored is overwritten.
    """

    def __init__(self, blobs: BlobStore, prefix: str = config.ASSET_PREFIX, max_workers: int = config.UPLOAD_WORKERS):
        self.blobs = blobs
        self.prefix = prefix
        self.max_workers = max(1, max_workers)

    def make_key(self, suggested_name: Optional[str], prefix: Optional[str] = None) -> str:
        return f"{self.prefix if prefix is None else prefix}{uuid.uuid4()}-{safe_filename(suggested_name)}"

    def upload(self, data: bytes, suggested_name: Optional[str], content_type: Optional[str] = None, prefix: Optional[str] = None) -> str:
        """
        Store ``data`` under a fresh key and return its retrieval URL.

        Raises:
            AssetUploadFailed: on any storage error.
        """
        key = self.make_key(suggested_name, prefix)
        try:
            self.blobs.put(key, data, content_type)
            url = self.blobs.get_url(key)
        except Exception as e:
            logger.error(f"Error uploading {suggested_name!r} as {key}: {str(e)}")
            raise AssetUploadFailed(e, suggested_name) from e
        logger.info(f"Uploaded {suggested_name!r} as {key}")
        return url

    def upload_file(self, staged: StagedFile, prefix: Optional[str] = None) -> str:
        return self.upload(staged.content, staged.filename, staged.content_type, prefix)

    def upload_staged(self, staged: Sequence[Sequence[StagedFile]]) -> List[List[str]]:
        """
        Upload every staged file, one list per colour variant.

        Uploads run concurrently; the returned URLs keep the staging order.
        If any upload fails the first failure is raised once the others have
        settled. Files that did upload stay in the blob store.
        """
        jobs = [(i, f) for i, files in enumerate(staged) for f in files]
        results: List[List[str]] = [[] for _ in staged]
        if not jobs:
            return results

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as pool:
            futures = [pool.submit(self.upload_file, f) for _, f in jobs]

        failures = [fut.exception() for fut in futures if fut.exception() is not None]
        if failures:
            raise failures[0]

        for (i, _), fut in zip(jobs, futures):
            results[i].append(fut.result())
        return results

    def gallery(self, prefix: str = config.GALLERY_PREFIX) -> List[str]:
        """Retrieval URLs of every asset stored under ``prefix``."""
        return [self.blobs.get_url(key) for key in self.blobs.list(prefix)]
