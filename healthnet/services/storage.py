"""Local file storage for uploads served under /uploads."""

import logging
import os
from typing import Dict, Optional

from fastapi import UploadFile

from healthnet.config import settings
from healthnet.database import get_db_context
from healthnet.exceptions import ValidationFailed
from healthnet.models.all_models import FileStorage
from healthnet.utils import ids
from healthnet.utils.file_utils import ensure_upload_dir, generate_unique_filename, is_allowed_file

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def save_upload(upload: UploadFile, folder: str) -> Dict[str, object]:
    """
    Store an uploaded file under UPLOAD_DIR/<folder>.

    Returns the metadata callers record on their own rows:
    file_name, file_path, file_url, file_size and mime_type.
    """
    if not upload.filename:
        raise ValidationFailed("Uploaded file has no name")
    if not is_allowed_file(upload.filename, settings.ALLOWED_UPLOAD_EXTENSIONS):
        raise ValidationFailed(
            "File type not allowed. Allowed types: " + ", ".join(settings.ALLOWED_UPLOAD_EXTENSIONS)
        )

    target_dir = os.path.join(settings.UPLOAD_DIR, folder)
    ensure_upload_dir(target_dir)
    stored_name = generate_unique_filename(upload.filename)
    file_path = os.path.join(target_dir, stored_name)
    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    size = 0
    with open(file_path, "wb") as out:
        while size <= max_bytes:
            chunk = upload.file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            out.write(chunk)

    if size > max_bytes:
        delete_file(file_path)
        raise ValidationFailed(f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB}MB upload limit")

    logger.info("Stored upload %s as %s (%d bytes)", upload.filename, file_path, size)
    return {
        "file_name": upload.filename,
        "file_path": file_path,
        "file_url": f"/uploads/{folder}/{stored_name}",
        "file_size": size,
        "mime_type": upload.content_type,
    }


def delete_file(file_path: Optional[str]) -> None:
    if not file_path:
        return
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("Could not remove %s", file_path)


def register_file(meta: Dict[str, object], entity_type: str, entity_id: str, uploaded_by: str, is_public: bool = False) -> None:
    """Best-effort FileStorage row for an upload already attached to its entity."""
    try:
        with get_db_context() as db:
            db.add(FileStorage(
                file_id=ids.generate_unique_id(db, FileStorage.file_id, ids.FILE),
                file_name=meta["file_name"],
                file_path=meta["file_path"],
                file_url=meta.get("file_url"),
                file_size=meta.get("file_size"),
                mime_type=meta.get("mime_type"),
                entity_type=entity_type,
                entity_id=entity_id,
                uploaded_by=uploaded_by,
                is_public=is_public,
            ))
            db.commit()
    except Exception:
        logger.exception("Failed to register stored file for %s %s", entity_type, entity_id)


def absolute_url(file_url: str) -> str:
    if file_url.startswith(("http://", "https://")):
        return file_url
    return settings.BACKEND_URL.rstrip("/") + "/" + file_url.lstrip("/")
