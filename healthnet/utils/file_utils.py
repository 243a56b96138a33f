"""
File handling utilities.
"""

import os
import uuid
from pathlib import Path
from typing import Iterable


def generate_unique_filename(original_filename: str) -> str:
    """
    Generate a unique filename using UUID.

    Args:
        original_filename: Original name of the file

    Returns:
        Unique filename with the original extension (lower-cased)
    """
    extension = get_file_extension(original_filename)
    return f"{uuid.uuid4().hex}{extension}"


def ensure_upload_dir(upload_dir: str) -> None:
    """Ensure the upload directory exists."""
    os.makedirs(upload_dir, exist_ok=True)


def get_file_extension(filename: str) -> str:
    """
    Get file extension in lowercase.

    Args:
        filename: Name of the file

    Returns:
        File extension (e.g., '.pdf', '.jpg')
    """
    return Path(filename).suffix.lower()


def is_allowed_file(filename: str, allowed_extensions: Iterable[str]) -> bool:
    """Check if the file extension is in `allowed_extensions`."""
    return get_file_extension(filename) in {ext.lower() for ext in allowed_extensions}
