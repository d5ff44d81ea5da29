"""
Page geometry for presentation slide formats.

Slide formats mimic PowerPoint page sizes and are printed with explicit
width/height and zero margins. Any other format name is left to Chromium's
built-in paper format table (A4, Letter, Legal, ...).
"""

from dataclasses import dataclass
from typing import Dict, Optional

CSS_DPI = 96


@dataclass(frozen=True)
class PageGeometry:
    """Exact page size in CSS pixels (96 DPI) and physical units."""

    width_px: int
    height_px: int
    width_in: str
    height_in: str
    width_mm: str
    height_mm: str

    @property
    def viewport(self) -> Dict[str, int]:
        return {"width": self.width_px, "height": self.height_px}


SLIDE_FORMATS: Dict[str, PageGeometry] = {
    "PPT_4_3": PageGeometry(
        width_px=960,    # 10in
        height_px=720,   # 7.5in
        width_in="10in",
        height_in="7.5in",
        width_mm="254mm",
        height_mm="190.5mm",
    ),
    "PPT_16_9": PageGeometry(
        width_px=1280,   # 13.333in
        height_px=720,   # 7.5in
        width_in="13.333in",
        height_in="7.5in",
        width_mm="338.667mm",
        height_mm="190.5mm",
    ),
    "PPT_16_10": PageGeometry(
        width_px=960,    # 10in
        height_px=600,   # 6.25in
        width_in="10in",
        height_in="6.25in",
        width_mm="254mm",
        height_mm="158.75mm",
    ),
}


def resolve_geometry(format_tag: Optional[str]) -> Optional[PageGeometry]:
    """
    Look up the slide geometry for a format tag.

    Returns None for anything that is not a slide format, meaning the tag
    should be passed to the print engine as a regular paper format.
    """
    if not format_tag:
        return None
    return SLIDE_FORMATS.get(format_tag)


def is_slide_format(format_tag: Optional[str]) -> bool:
    return resolve_geometry(format_tag) is not None
