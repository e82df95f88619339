"""Utility functions for uploaded file handling."""

import re
from pathlib import Path

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe blob storage.

    Removes dangerous characters, prevents path traversal, and handles edge cases
    while preserving readability and file extensions.

    Args:
        filename: Original filename from user

    Returns:
        Sanitized filename safe for filesystem and URL use
    """
    # Normalize Windows separators before taking the last path component
    filename = Path(filename.replace("\\", "/")).name

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    # Allow only word characters, spaces, dots, and hyphens
    sanitized = re.sub(r"[^\w\s.-]", "_", filename)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = re.sub(r"\s+", " ", sanitized).strip()

    # Limit length to 100 characters while preserving extension
    if len(sanitized) > 100:
        parts = sanitized.rsplit(".", 1)
        if len(parts) == 2:
            name, ext = parts
            max_name_len = 96 - len(ext)
            sanitized = f"{name[:max_name_len]}.{ext}" if max_name_len > 0 else f"file.{ext[:95]}"
        else:
            sanitized = sanitized[:100]

    # Check if result is empty or contains only whitespace/underscores/dots/hyphens
    if not sanitized or not re.sub(r"[\s._-]", "", sanitized):
        sanitized = "unnamed_file"

    return sanitized
