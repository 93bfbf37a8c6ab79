"""Map (filename, media type) to a file type and decide what can be extracted."""

from __future__ import annotations

import os

from customer_check import kinds
from customer_check.errors import UnsupportedFileTypeError

IMAGE = "image"
TEXT = "text"
PDF = "pdf"
WORD = "word"
EXCEL = "excel"
POWERPOINT = "powerpoint"
ARCHIVE = "archive"
VIDEO = "video"
AUDIO = "audio"
UNKNOWN = "unknown"

PROCESSABLE_TYPES = frozenset({IMAGE, TEXT, PDF, WORD, EXCEL, POWERPOINT})
OFFICE_TYPES = frozenset({WORD, EXCEL, POWERPOINT})

# (prefix, file type); checked in order
_MEDIA_TYPE_PREFIXES: tuple[tuple[str, str], ...] = (
    ("image/", IMAGE),
    ("application/vnd.openxmlformats-officedocument.wordprocessingml", WORD),
    ("application/vnd.openxmlformats-officedocument.spreadsheetml", EXCEL),
    ("application/vnd.openxmlformats-officedocument.presentationml", POWERPOINT),
    ("video/", VIDEO),
    ("audio/", AUDIO),
    ("application/zip", ARCHIVE),
    ("application/x-rar", ARCHIVE),
    ("application/x-7z", ARCHIVE),
)

_MEDIA_TYPES: dict[str, str] = {
    "text/plain": TEXT,
    "application/pdf": PDF,
    "application/msword": WORD,
    "application/vnd.ms-excel": EXCEL,
    "application/vnd.ms-powerpoint": POWERPOINT,
}

_EXTENSIONS: dict[str, str] = {
    **dict.fromkeys(
        (
            ".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif", ".webp", ".heic",
            ".svg", ".jfif", ".pjpeg", ".pjp", ".ico", ".cur", ".tga", ".psd", ".raw",
            ".cr2", ".nef", ".orf", ".sr2", ".dng", ".arw", ".rw2", ".pef", ".srw",
            ".x3f", ".mrw", ".raf", ".dcr", ".kdc", ".erf", ".mef", ".iiq", ".3fr",
            ".fff", ".hdr", ".exr", ".dds", ".ktx", ".pkm", ".pvr", ".astc",
        ),
        IMAGE,
    ),
    **dict.fromkeys((".txt", ".md", ".csv", ".json", ".xml", ".yaml", ".yml"), TEXT),
    ".pdf": PDF,
    **dict.fromkeys((".doc", ".docx"), WORD),
    **dict.fromkeys((".xls", ".xlsx", ".xlsm"), EXCEL),
    **dict.fromkeys((".ppt", ".pptx", ".pptm"), POWERPOINT),
    **dict.fromkeys((".zip", ".rar", ".7z", ".tar", ".gz", ".bz2"), ARCHIVE),
    **dict.fromkeys((".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mkv"), VIDEO),
    **dict.fromkeys((".mp3", ".wav", ".flac", ".aac", ".ogg", ".m4a"), AUDIO),
}


def detect_file_type(filename: str, media_type: str | None) -> str:
    """Media type wins when it is recognised; the extension decides otherwise."""
    mt = (media_type or "").split(";", 1)[0].strip().lower()
    if mt:
        if mt in _MEDIA_TYPES:
            return _MEDIA_TYPES[mt]
        for prefix, file_type in _MEDIA_TYPE_PREFIXES:
            if mt.startswith(prefix):
                return file_type

    _, ext = os.path.splitext(filename)
    return _EXTENSIONS.get(ext.lower(), UNKNOWN)


def resolve_file_type(filename: str, media_type: str | None, kind: str) -> str:
    # Site-visit uploads are photos even when served without a usable type.
    file_type = detect_file_type(filename, media_type)
    if file_type == UNKNOWN and kind == kinds.SITE_VISIT_PHOTOS:
        return IMAGE
    return file_type


def is_processable(file_type: str) -> bool:
    return file_type in PROCESSABLE_TYPES


def ensure_processable(file_type: str) -> None:
    if not is_processable(file_type):
        raise UnsupportedFileTypeError(file_type)
