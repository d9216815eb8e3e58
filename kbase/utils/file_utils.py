"""Helpers for naming and decoding uploaded files.

Inline uploads arrive as ``data:<mime>;base64,<payload>`` URLs (the form
browsers produce with ``FileReader.readAsDataURL``) or as bare base64.  The
declared MIME type wins; otherwise the type is guessed from the file name.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from pathlib import PurePosixPath
from urllib.parse import unquote

from kbase.utils.errors import ValidationError

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# mimetypes does not know these on every platform.
_EXTRA_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".csv": "text/csv",
    ".txt": "text/plain",
    ".pdf": "application/pdf",
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*),(?P<payload>.*)$", re.DOTALL)


def guess_content_type(file_name: str) -> str:
    """Return the MIME type implied by *file_name*'s extension."""
    extension = get_file_extension(file_name).lower()
    if extension in _EXTRA_TYPES:
        return _EXTRA_TYPES[extension]
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_CONTENT_TYPE


def get_file_extension(file_name: str) -> str:
    """Return the extension including the dot (``".txt"``), or ``""``."""
    return PurePosixPath(file_name or "").suffix


def decode_file_data(file_data: str, file_name: str) -> tuple[str, bytes]:
    """Decode an inline upload into ``(content_type, bytes)``.

    Raises
    ------
    ValidationError
        If the payload is not valid base64.
    """
    content_type = ""
    payload = file_data.strip()

    match = _DATA_URL_RE.match(payload)
    if match:
        content_type = match.group("mime").strip().lower()
        payload = match.group("payload")
        if ";base64" not in match.group("params").lower():
            # Plain (percent-encoded) data URLs are rare; treat as UTF-8 text.
            return content_type or guess_content_type(file_name), unquote(payload).encode("utf-8")

    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(message=f"File data for '{file_name}' is not valid base64") from exc

    return content_type or guess_content_type(file_name), data
