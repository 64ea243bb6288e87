import logging
import re
import secrets
import time
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from .config import settings

log = logging.getLogger(__name__)

IMAGE_TYPES = re.compile(r"jpeg|jpg|png|gif")
URL_PREFIX = "/uploads/"


def upload_root() -> Path:
    p = Path(settings.upload_dir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _extension(filename: str) -> str:
    return Path(filename or "").suffix.lower().lstrip(".")


async def save_image(file: Optional[UploadFile]) -> str:
    """Store an uploaded image and return its public URL."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Recipe image is required")

    ext = _extension(file.filename)
    if not (IMAGE_TYPES.search(file.content_type or "") and IMAGE_TYPES.fullmatch(ext)):
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Recipe image is required")
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=400, detail="Image is too large")

    name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"
    await run_in_threadpool((upload_root() / name).write_bytes, data)
    log.info("stored image %s (%d bytes)", name, len(data))
    return settings.public_base_url.rstrip("/") + URL_PREFIX + name


def delete_image(image_url: str) -> bool:
    """Remove the file behind an image URL we issued. Other URLs are left alone."""
    if not image_url or URL_PREFIX not in image_url:
        return False
    name = Path(image_url.split(URL_PREFIX, 1)[1]).name
    if not name:
        return False
    path = upload_root() / name
    if not path.exists():
        return False
    path.unlink()
    log.info("deleted image %s", name)
    return True
