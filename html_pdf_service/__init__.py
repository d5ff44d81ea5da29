"""
HTML to PDF Converter - Playwright/Chromium backed conversion service.

Converts uploaded HTML files, raw HTML and remote URLs to PDF using the
browser's native print pipeline. Supports standard paper formats and
fixed-aspect presentation slide sizes (PPT_4_3, PPT_16_9, PPT_16_10),
with Devanagari font support for Hindi documents.
"""

__version__ = "1.0.0"
