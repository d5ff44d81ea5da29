"""
Pydantic models for the converter service.

These models define conversion options, results, and the HTTP request and
response bodies. Option parsing from loosely typed request fields lives here
too so the HTTP app and tests share one implementation.
"""

import math
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .geometry import is_slide_format

DEFAULT_FORMAT = "A4"
SLIDE_FORMAT_PREFIX = "PPT_"


class Margins(BaseModel):
    """Page margins as CSS length strings."""

    top: str = "12mm"
    right: str = "10mm"
    bottom: str = "14mm"
    left: str = "10mm"

    @classmethod
    def zero(cls) -> "Margins":
        return cls(top="0", right="0", bottom="0", left="0")

    def css(self) -> str:
        """Shorthand for an @page margin declaration."""
        return f"{self.top or '0'} {self.right or '0'} {self.bottom or '0'} {self.left or '0'}"


class FontSupport(BaseModel):
    """Script-specific font handling."""

    hindi: bool = Field(True, description="Inject Devanagari font stack and lang markers")


class ConversionOptions(BaseModel):
    """Options for a single conversion call."""

    format: str = Field(DEFAULT_FORMAT, description="Paper format or slide tag (PPT_4_3, PPT_16_9, PPT_16_10)")
    margin: Margins = Field(default_factory=Margins)
    landscape: bool = False
    scale: float = Field(1.0, gt=0)
    print_background: bool = True
    prefer_css_page_size: bool = True
    display_header_footer: bool = False
    font_support: FontSupport = Field(default_factory=FontSupport)

    @property
    def is_slide(self) -> bool:
        return is_slide_format(self.format)

    @property
    def effective_margin(self) -> Margins:
        """Margins actually printed; slide formats are always borderless."""
        if self.is_slide:
            return Margins.zero()
        return self.margin

    def merged(self, overrides: Union["ConversionOptions", Mapping[str, Any], None]) -> "ConversionOptions":
        """
        Return a copy with caller overrides applied on top of these options.

        Only fields the caller actually set are taken from an options object,
        so a partially specified ConversionOptions does not reset defaults.
        """
        if overrides is None:
            return self.model_copy(deep=True)
        if isinstance(overrides, ConversionOptions):
            overrides = overrides.model_dump(exclude_unset=True)
        data = self.model_dump()
        for key, value in overrides.items():
            if isinstance(value, BaseModel):
                value = value.model_dump(exclude_unset=True)
            if isinstance(value, Mapping) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return ConversionOptions.model_validate(data)


class ConversionResult(BaseModel):
    """Outcome of a successful conversion."""

    success: bool = True
    output_path: str
    file_size: int = Field(..., description="Size of the written PDF in bytes")
    page_count: int = Field(1, description="Not computed; always 1")


# ============================================================================
# HTTP Request/Response Models
# ============================================================================

class ConversionFields(BaseModel):
    """Option fields shared by every conversion endpoint (camelCase on the wire)."""

    format: Optional[str] = Field(None, description="Paper format or slide tag")
    landscape: Optional[Union[bool, str]] = Field(None, description="true/'true' for landscape")
    scale: Optional[Union[float, str]] = Field(None, description="Print zoom factor")
    marginTop: Optional[str] = None
    marginRight: Optional[str] = None
    marginBottom: Optional[str] = None
    marginLeft: Optional[str] = None


class HtmlConvertRequest(ConversionFields):
    """Raw HTML to PDF request."""

    htmlContent: Optional[str] = Field(None, description="HTML document or fragment")


class UrlConvertRequest(ConversionFields):
    """Remote URL to PDF request."""

    url: Optional[str] = Field(None, description="Absolute http(s) URL to render")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    message: str = "HTML to PDF Converter API is running"


class ErrorResponse(BaseModel):
    error: str


# ============================================================================
# Option parsing
# ============================================================================

def _parse_bool(value: Any) -> bool:
    return value is True or value == "true"


def _parse_scale(value: Any) -> float:
    try:
        scale = float(value)
    except (TypeError, ValueError):
        return 1.0
    if math.isnan(scale) or scale <= 0:
        return 1.0
    return scale


def parse_options(body: Union[Mapping[str, Any], BaseModel]) -> ConversionOptions:
    """
    Normalize loosely typed request fields into ConversionOptions.

    Form posts carry every value as a string, JSON bodies may carry real
    booleans and numbers; both are accepted. Slide formats (PPT_*) always get
    zero margins regardless of what the caller sent.

    Args:
        body: Request fields (dict, form data or a ConversionFields model)

    Returns:
        ConversionOptions ready for the converter
    """
    if isinstance(body, BaseModel):
        body = body.model_dump()

    format_name = body.get("format") or DEFAULT_FORMAT
    defaults = Margins()

    margin = Margins(
        top=body.get("marginTop") or defaults.top,
        right=body.get("marginRight") or defaults.right,
        bottom=body.get("marginBottom") or defaults.bottom,
        left=body.get("marginLeft") or defaults.left,
    )
    if format_name.startswith(SLIDE_FORMAT_PREFIX):
        margin = Margins.zero()

    return ConversionOptions(
        format=format_name,
        landscape=_parse_bool(body.get("landscape")),
        scale=_parse_scale(body.get("scale")),
        print_background=True,
        prefer_css_page_size=True,
        margin=margin,
    )
