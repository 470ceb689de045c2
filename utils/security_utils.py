"""
Security utilities for file upload validation and sanitization
"""
import re
import secrets
import time
from pathlib import Path
from typing import Optional
from fastapi import HTTPException, UploadFile


# Security constants
ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
]

ALLOWED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp"]

# 10MB in bytes
MAX_FILE_SIZE = 10 * 1024 * 1024


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent path traversal attacks.

    Removes:
    - Directory separators (/ and \\)
    - Path traversal sequences (..)
    - Null bytes (\\x00)
    - Any other potentially dangerous characters

    Args:
        filename: Original filename

    Returns:
        Sanitized filename safe for use in file paths
    """
    if not filename:
        raise ValueError("Filename cannot be empty")

    # Remove null bytes
    filename = filename.replace("\x00", "")

    # Remove directory separators
    filename = filename.replace("/", "").replace("\\", "")

    # Remove path traversal sequences
    while ".." in filename:
        filename = filename.replace("..", "")

    # Keep letters, numbers, dots, hyphens and underscores; spaces become underscores
    filename = re.sub(r'\s+', '_', filename)
    filename = re.sub(r'[^a-zA-Z0-9._\-]', '', filename)

    # Remove leading/trailing dots (hidden files, Windows restrictions)
    filename = filename.strip('.')

    if not filename:
        raise ValueError("Filename is invalid after sanitization")

    # Limit filename length, leaving room for the timestamp prefix
    if len(filename) > 200:
        ext = Path(filename).suffix
        name_without_ext = Path(filename).stem[:200 - len(ext)]
        filename = name_without_ext + ext

    return filename


def get_file_extension(filename: str) -> str:
    """
    Extract file extension from filename (lowercase).

    Returns:
        File extension with leading dot (e.g., ".png") or empty string
    """
    return Path(filename).suffix.lower()


def validate_file_extension(filename: str) -> None:
    """
    Validate that file extension is in the whitelist.

    Raises:
        HTTPException: If extension is not allowed
    """
    ext = get_file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"File extension '{ext}' is not allowed. Allowed extensions: {', '.join(ALLOWED_EXTENSIONS)}"
        )


def detect_mime_type_from_content(content: bytes) -> Optional[str]:
    """
    Detect MIME type from file content using magic bytes.

    Returns:
        Detected MIME type or None if unknown
    """
    if not content:
        return None

    if content[:3] == b'\xff\xd8\xff':
        return "image/jpeg"

    if content[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"

    if content[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"

    # WEBP: RIFF....WEBP
    if content[:4] == b'RIFF' and len(content) >= 12 and content[8:12] == b'WEBP':
        return "image/webp"

    return None


def validate_file_content(content: bytes, max_size: int = MAX_FILE_SIZE) -> None:
    """
    Validate file content (size and MIME type).

    Raises:
        HTTPException: If validation fails
    """
    if len(content) > max_size:
        size_mb = len(content) / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        raise HTTPException(
            status_code=400,
            detail=f"File size ({size_mb:.2f}MB) exceeds maximum allowed size ({max_mb:g}MB)"
        )

    if len(content) == 0:
        raise HTTPException(
            status_code=400,
            detail="File is empty"
        )

    detected_mime = detect_mime_type_from_content(content)
    if detected_mime not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"File content is not an allowed image type. Allowed types: {', '.join(ALLOWED_MIME_TYPES)}"
        )


async def validate_uploaded_file(file: UploadFile, max_size: int = MAX_FILE_SIZE) -> tuple[str, bytes]:
    """
    Comprehensive validation of uploaded file.

    This function:
    1. Sanitizes the filename
    2. Validates file extension
    3. Reads and validates file content (size and MIME type)

    Args:
        file: FastAPI UploadFile object
        max_size: Upper bound on the file size in bytes

    Returns:
        Tuple of (sanitized_filename, file_content)

    Raises:
        HTTPException: If any validation fails
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Filename is required")

    try:
        sanitized_filename = sanitize_filename(file.filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    validate_file_extension(sanitized_filename)

    # Read one byte past the limit so oversized uploads are caught without
    # buffering the whole body
    content = await file.read(max_size + 1)

    validate_file_content(content, max_size)

    await file.seek(0)

    return sanitized_filename, content


def generate_upload_filename(sanitized_filename: str, upload_dir: Path, force_segment: bool = False) -> str:
    """
    Build the stored name for an upload: <epoch-millis>-<original name>.

    If that name is already taken in upload_dir, or force_segment is set, a
    random hex segment is inserted after the timestamp. The existence check is
    only a hint; callers must still create the file exclusively.
    """
    millis = int(time.time() * 1000)
    candidate = f"{millis}-{sanitized_filename}"
    while force_segment or (upload_dir / candidate).exists():
        force_segment = False
        candidate = f"{millis}-{secrets.token_hex(4)}-{sanitized_filename}"
    return candidate
