"""
Filesystem helpers for the HTTP layer: upload validation, unique names,
directory setup and best-effort removal of transient files.
"""

import logging
import re
import time
import uuid
from pathlib import Path
from typing import Optional

from .config import ConverterSettings

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html"
HTML_SUFFIX = ".html"


def sanitize_for_path(text: str) -> str:
    """
    Sanitize text for use in filesystem paths.

    Removes special characters (except word chars, dots, spaces, hyphens),
    replaces spaces with underscores and strips any directory components.

    Example:
        >>> sanitize_for_path("../My Report (final).html")
        "My_Report__final_.html"
    """
    name = Path(text.replace("\\", "/")).name
    cleaned = re.sub(r"[^\w\s.-]", "_", name)
    return cleaned.replace(" ", "_").lstrip(".")


def is_html_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """An upload is accepted when it is typed text/html or named *.html."""
    if content_type and content_type.split(";")[0].strip().lower() == HTML_CONTENT_TYPE:
        return True
    return bool(filename) and filename.lower().endswith(HTML_SUFFIX)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def upload_path(settings: ConverterSettings, filename: str) -> Path:
    return settings.uploads_dir / f"{_timestamp_ms()}-{sanitize_for_path(filename) or 'upload.html'}"


def output_path(settings: ConverterSettings) -> Path:
    return settings.output_dir / f"output-{_timestamp_ms()}-{uuid.uuid4().hex[:8]}.pdf"


def ensure_directories(settings: ConverterSettings) -> None:
    for directory in (settings.uploads_dir, settings.temp_dir, settings.output_dir):
        directory.mkdir(parents=True, exist_ok=True)


def remove_file(path: Path) -> None:
    """Delete a transient file; failures are logged, never raised."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Cleanup error for {path}: {e}")
