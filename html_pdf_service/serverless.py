"""
Serverless handler (AWS Lambda / Netlify style) for HTML to PDF conversion.

A reduced, self-contained flow: raw HTML or a URL in, base64 PDF out. Each
invocation launches and closes its own Chromium; there is no shared session
and no slide format handling.
"""

import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from .browser import LAUNCH_ARGS
from .config import get_settings
from .models import DEFAULT_FORMAT, Margins

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}
PDF_HEADERS = {
    "Content-Type": "application/pdf",
    "Content-Disposition": "attachment; filename=converted.pdf",
}


def _error(status_code: int, message: str) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": JSON_HEADERS,
        "body": json.dumps({"error": message}),
    }


def _request_method(event: Dict[str, Any]) -> Optional[str]:
    # API Gateway v1 / Netlify use httpMethod, HTTP API v2 nests it
    method = event.get("httpMethod")
    if method is None:
        method = ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return method.upper() if method else None


def _parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    body = json.loads(raw)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


async def render_pdf(
    html: Optional[str] = None,
    url: Optional[str] = None,
    format: str = DEFAULT_FORMAT,
    landscape: bool = False,
) -> bytes:
    """
    Render HTML or a URL to PDF bytes with a short-lived browser.

    Args:
        html: HTML content (ignored when ``url`` is given)
        url: Page to load instead of ``html``
        format: Chromium paper format
        landscape: Landscape orientation

    Returns:
        PDF bytes
    """
    from playwright.async_api import async_playwright

    settings = get_settings()

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=settings.playwright_headless, args=LAUNCH_ARGS)
        try:
            page = await browser.new_page()
            if url:
                await page.goto(url, wait_until="networkidle", timeout=settings.url_timeout_ms)
            else:
                await page.set_content(
                    html, wait_until="networkidle", timeout=settings.navigation_timeout_ms
                )

            return await page.pdf(
                format=format,
                landscape=landscape,
                print_background=True,
                margin=Margins().model_dump(),
            )
        finally:
            await browser.close()


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Entry point for the cloud function.

    Accepts ``POST`` with a JSON body ``{htmlContent | url, format?, landscape?}``.

    Returns:
        Lambda proxy response; the PDF is base64 encoded with
        ``isBase64Encoded`` set, errors are JSON ``{"error": ...}``.
    """
    if _request_method(event) != "POST":
        return _error(405, "Method not allowed")

    try:
        body = _parse_body(event)
    except (ValueError, binascii.Error) as e:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
        return _error(400, f"Invalid request body: {e}")

    html = body.get("htmlContent")
    url = body.get("url")
    if not html and not url:
        return _error(400, "HTML content or URL is required")

    try:
        pdf_bytes = asyncio.run(render_pdf(
            html=html,
            url=url,
            format=body.get("format") or DEFAULT_FORMAT,
            landscape=body.get("landscape") is True or body.get("landscape") == "true",
        ))
    except Exception as e:
        logger.error(f"Conversion error: {e}")
        return _error(500, str(e))

    return {
        "statusCode": 200,
        "headers": PDF_HEADERS,
        "body": base64.b64encode(pdf_bytes).decode("ascii"),
        "isBase64Encoded": True,
    }
