import mimetypes

import magic

from shredbox.exceptions import ContentDetectionError

# Built-in table only, so extensions do not depend on the host's mime.types.
_types = mimetypes.MimeTypes()
for _mime, _ext in [
    ("application/gzip", ".gz"),
    ("application/x-bzip2", ".bz2"),
    ("application/x-xz", ".xz"),
    ("application/zstd", ".zst"),
    ("application/x-7z-compressed", ".7z"),
    ("application/x-rar", ".rar"),
]:
    _types.add_type(_mime, _ext)

# Types libmagic reports for which no useful extension exists.
_NO_EXTENSION = {"application/octet-stream", "application/x-empty", "inode/x-empty"}


def extension_for(mime: str) -> str:
    """Canonical extension with its leading dot, or an empty string."""
    if mime in _NO_EXTENSION:
        return ""
    return _types.guess_extension(mime, strict=False) or ""


def detect(data: bytes) -> tuple[str, str]:
    """Return ``(mime_type, extension)`` sniffed from the bytes themselves."""
    try:
        mime = magic.from_buffer(data, mime=True)
    except (magic.MagicException, OSError) as exc:
        raise ContentDetectionError(f"could not detect content type: {exc}") from exc
    if not mime:
        raise ContentDetectionError("libmagic returned no content type")
    return mime, extension_for(mime)
