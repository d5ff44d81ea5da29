"""
HTML preparation for PDF rendering.

These functions add language and charset markers, build the print
stylesheet (page geometry, print safety rules, Devanagari fonts) and inject
it into the caller's document before it is staged for Chromium.
"""

import re
from typing import Optional

from .geometry import PageGeometry
from .models import ConversionOptions

# Structural scans: case-insensitive and tolerant of attributes.
# `<head\b` does not match `<header>`.
HTML_OPEN_RE = re.compile(r"<html\b([^>]*)>", re.IGNORECASE)
LANG_ATTR_RE = re.compile(r"\blang\s*=", re.IGNORECASE)
HEAD_OPEN_RE = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
BODY_OPEN_RE = re.compile(r"<body\b[^>]*>", re.IGNORECASE)
CHARSET_RE = re.compile(r"<meta\b[^>]*\bcharset\s*=", re.IGNORECASE)
STYLE_BLOCK_RE = re.compile(
    r"<style\s+data-pdf-converter=\"print\">.*?</style>", re.IGNORECASE | re.DOTALL
)

DEFAULT_LANG = "hi"
CHARSET_META = '<meta charset="UTF-8">'

PRINT_CSS = """
@media print {
    * {
        -webkit-print-color-adjust: exact !important;
        print-color-adjust: exact !important;
    }
    img, table, h1, h2, h3, h4, h5, h6, ul, ol, p {
        page-break-inside: avoid;
    }
    h1, h2, h3, h4, h5, h6 {
        page-break-after: avoid;
    }
}
"""

HINDI_FONT_CSS = """
@import url('https://fonts.googleapis.com/css2?family=Hind:wght@300;400;500;600;700&display=swap');
@import url('https://fonts.googleapis.com/css2?family=Noto+Sans+Devanagari:wght@400;500;600;700&display=swap');

[lang="hi"], .hindi, *:lang(hi) {
    font-family: 'Noto Sans Devanagari', 'Hind', 'Arial Unicode MS', sans-serif !important;
    font-feature-settings: "kern" 1;
    text-rendering: optimizeLegibility;
}
"""


def slide_page_css(geometry: PageGeometry) -> str:
    """@page and sizing rules for an exact, borderless slide page."""
    w, h = geometry.width_in, geometry.height_in
    return f"""
@page {{
    size: {w} {h};
    margin: 0;
}}
@media screen {{
    html, body {{
        width: {geometry.width_px}px;
        height: {geometry.height_px}px;
        margin: 0;
        padding: 0;
        overflow: visible;
    }}
}}
@media print {{
    html, body {{
        width: {w};
        height: {h};
        margin: 0 !important;
        padding: 0 !important;
        overflow: visible !important;
    }}
    .page {{
        width: {w} !important;
        height: {h} !important;
        max-width: {w} !important;
        max-height: {h} !important;
        min-width: {w} !important;
        min-height: {h} !important;
        margin: 0 !important;
        padding: 0 !important;
        page-break-after: always !important;
        page-break-before: auto !important;
        page-break-inside: avoid !important;
        position: relative !important;
        overflow: visible !important;
        box-sizing: border-box !important;
    }}
    .page:first-child {{
        page-break-before: auto !important;
    }}
    .page:last-child {{
        page-break-after: auto !important;
    }}
}}
* {{
    box-sizing: border-box;
    -webkit-print-color-adjust: exact !important;
    print-color-adjust: exact !important;
}}
"""


def slide_print_override_css(geometry: PageGeometry) -> str:
    """
    Print overrides added to the live page after navigation.

    Repeats the slide sizing as a late style tag so rules from the
    document's own stylesheets cannot win over it.
    """
    w, h = geometry.width_in, geometry.height_in
    return f"""
@media print {{
    html, body {{
        width: {w} !important;
        height: {h} !important;
        margin: 0 !important;
        padding: 0 !important;
        overflow: visible !important;
    }}
    .page {{
        width: {w} !important;
        height: {h} !important;
        min-width: {w} !important;
        min-height: {h} !important;
        max-width: {w} !important;
        max-height: {h} !important;
        margin: 0 !important;
        padding: 0 !important;
        overflow: visible !important;
        position: relative !important;
        page-break-after: always !important;
        page-break-before: auto !important;
        page-break-inside: avoid !important;
        box-sizing: border-box !important;
    }}
    .page:last-child {{
        page-break-after: auto !important;
    }}
}}
@media screen {{
    .page {{
        margin-bottom: 20px;
    }}
}}
"""


def paper_page_css(options: ConversionOptions) -> str:
    """@page margin rules for a standard paper format."""
    return f"""
@page {{
    margin: {options.margin.css()};
}}
html, body {{
    width: 100%;
    height: 100%;
    margin: 0;
    padding: 0;
    box-sizing: border-box;
}}
"""


def build_style_block(options: ConversionOptions, geometry: Optional[PageGeometry] = None) -> str:
    """
    Build the <style> element injected into every document.

    Combines page geometry rules, print safety rules and, when Hindi font
    support is on, the Devanagari font stack.
    """
    page_css = slide_page_css(geometry) if geometry else paper_page_css(options)
    font_css = HINDI_FONT_CSS if options.font_support.hindi else ""
    # @import rules are only honoured at the top of a stylesheet
    return f'<style data-pdf-converter="print">{font_css}{page_css}{PRINT_CSS}</style>'


def ensure_lang(html: str, lang: str = DEFAULT_LANG) -> str:
    """Add a lang attribute to the root <html> tag unless one is present."""
    match = HTML_OPEN_RE.search(html)
    if not match or LANG_ATTR_RE.search(match.group(1)):
        return html
    insert_at = match.start() + len("<html")
    return f'{html[:insert_at]} lang="{lang}"{html[insert_at:]}'


def ensure_charset(html: str) -> str:
    """Declare UTF-8 right after <head> unless a charset is already declared."""
    if CHARSET_RE.search(html):
        return html
    match = HEAD_OPEN_RE.search(html)
    if not match:
        return html
    return f"{html[:match.end()]}\n{CHARSET_META}{html[match.end():]}"


def has_head(html: str) -> bool:
    """True when the document opens a <head>; the closing tag is optional in HTML."""
    return HEAD_OPEN_RE.search(html) is not None


def _style_insert_position(html: str) -> int:
    close = HEAD_CLOSE_RE.search(html)
    if close:
        return close.start()
    # Head closed implicitly by <body>
    body = BODY_OPEN_RE.search(html)
    if body:
        return body.start()
    return HEAD_OPEN_RE.search(html).end()


def wrap_fragment(html: str, style_block: str, lang: Optional[str] = DEFAULT_LANG) -> str:
    """Wrap a head-less fragment in a minimal document, content untouched."""
    lang_attr = f' lang="{lang}"' if lang else ""
    return (
        "<!DOCTYPE html>\n"
        f"<html{lang_attr}>\n"
        "<head>\n"
        f"{CHARSET_META}\n"
        f"{style_block}\n"
        "</head>\n"
        "<body>\n"
        f"{html}\n"
        "</body>\n"
        "</html>\n"
    )


def prepare_html(
    html: str,
    options: ConversionOptions,
    geometry: Optional[PageGeometry] = None
) -> str:
    """
    Produce the document that is staged for printing.

    Documents with a <head> keep their content; the style block is placed
    right before </head>, or before <body> when </head> is omitted
    (replacing one left by an earlier pass). Anything
    else is treated as a fragment and wrapped in a fresh document.

    Args:
        html: Caller's HTML document or fragment
        options: Conversion options (margins, font support)
        geometry: Slide geometry, or None for paper formats

    Returns:
        New HTML string; the input is never modified
    """
    style_block = build_style_block(options, geometry)
    hindi = options.font_support.hindi

    if not has_head(html):
        return wrap_fragment(html, style_block, lang=DEFAULT_LANG if hindi else None)

    processed = ensure_charset(html)
    if hindi:
        processed = ensure_lang(processed)

    if STYLE_BLOCK_RE.search(processed):
        return STYLE_BLOCK_RE.sub(lambda _: style_block, processed, count=1)

    at = _style_insert_position(processed)
    return f"{processed[:at]}{style_block}{processed[at:]}"
