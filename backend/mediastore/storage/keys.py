"""
Object key generation.

Pattern: [{folder}/]{uuid}[.{ext}]

The UUID makes every key unique per upload regardless of the original
filename; only the extension is kept so the object still carries a
content-type hint.
"""
import uuid
from typing import Optional


def get_extension(filename: str) -> str:
    """
    Return the last dot-segment of a filename, verbatim.

    Returns an empty string when the filename has no dot.
    """
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1]


def generate_unique_filename(original_filename: str) -> str:
    """Generate a random filename that keeps the original extension."""
    extension = get_extension(original_filename)
    file_uuid = str(uuid.uuid4())
    return f"{file_uuid}.{extension}" if extension else file_uuid


def generate_object_key(original_filename: str, folder: Optional[str] = None) -> str:
    """
    Generate a unique object key for an upload.

    Args:
        original_filename: Filename as supplied by the client (for the extension)
        folder: Optional folder prefix (no prefix when empty)

    Returns:
        Object key string
    """
    unique_filename = generate_unique_filename(original_filename)
    return f"{folder}/{unique_filename}" if folder else unique_filename
