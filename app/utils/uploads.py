# app/utils/uploads.py
import logging
import os
import uuid
from pathlib import Path
from typing import List, Optional

from fastapi import HTTPException, UploadFile

from app.core.config import MAX_UPLOAD_FILES, UPLOAD_DIR

logger = logging.getLogger(__name__)

# URL prefix the upload directory is mounted at
UPLOAD_URL_PREFIX = "/uploads"

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def validate_images(files: Optional[List[UploadFile]]) -> List[UploadFile]:
    files = [f for f in (files or []) if f is not None and f.filename]
    if len(files) > MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_UPLOAD_FILES} images are allowed")
    for f in files:
        if f.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Only PNG, JPEG, WebP and GIF images are allowed.",
            )
    return files


def save_images(files: List[UploadFile], upload_dir: str = UPLOAD_DIR) -> List[str]:
    """Write uploads to disk under random names and return their public URLs."""
    Path(upload_dir).mkdir(parents=True, exist_ok=True)
    urls = []
    for f in files:
        filename = f"{uuid.uuid4().hex}{ALLOWED_IMAGE_TYPES[f.content_type]}"
        with open(os.path.join(upload_dir, filename), "wb") as out:
            out.write(f.file.read())
        urls.append(f"{UPLOAD_URL_PREFIX}/{filename}")
        logger.info(f"Stored upload {f.filename!r} as {filename}")
    return urls


def remove_images(urls: List[str], upload_dir: str = UPLOAD_DIR) -> None:
    """Best-effort cleanup of files written for a request that was rolled back."""
    for url in urls:
        path = os.path.join(upload_dir, os.path.basename(url))
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove upload {path}: {e}")
