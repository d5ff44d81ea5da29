"""
HTML to PDF Converter - FastAPI application.

Provides endpoints for converting uploaded HTML files, remote URLs and raw
HTML to PDF using a shared Playwright/Chromium session. The browser session
is created by ``create_app`` (or injected by the caller) and closed on
shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .browser import BrowserSession
from .config import ConverterSettings, get_settings, validate_config_on_startup
from .converter import HtmlToPdfConverter
from .files import (
    ensure_directories,
    is_html_upload,
    output_path,
    remove_file,
    upload_path,
)
from .models import (
    ConversionOptions,
    HealthResponse,
    HtmlConvertRequest,
    UrlConvertRequest,
    parse_options,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

DOWNLOAD_FILENAME = "converted.pdf"
ALLOWED_URL_SCHEMES = {"http", "https"}


def is_valid_url(url: str) -> bool:
    """Absolute http(s) URL with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ALLOWED_URL_SCHEMES and bool(parsed.netloc)


def create_app(
    settings: Optional[ConverterSettings] = None,
    session: Optional[BrowserSession] = None,
    converter: Optional[HtmlToPdfConverter] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service configuration (defaults to environment settings)
        session: Browser session shared by all conversions
        converter: Pre-built converter; built from ``session`` when omitted

    Returns:
        Configured FastAPI app
    """
    settings = validate_config_on_startup(settings or get_settings())
    logging.getLogger().setLevel(settings.log_level)

    if converter is None:
        session = session or BrowserSession.from_settings(settings)
        converter = HtmlToPdfConverter(session, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create working directories, launch and self-test Chromium, close it on shutdown."""
        ensure_directories(settings)
        logger.info("Converter starting - launching Chromium...")
        try:
            await converter.session.start()
            await converter.session.self_test()
            app.state.browser_error = None
            logger.info("PDF converter initialized")
        except Exception as e:
            app.state.browser_error = str(e)
            logger.error(f"Failed to initialize converter: {e}")
            logger.error("PDF generation will retry the browser launch on the next request.")

        yield

        logger.info("Shutting down gracefully...")
        await converter.close()

    app = FastAPI(
        title="HTML to PDF Converter",
        version=__version__,
        description="HTML to PDF conversion using Playwright/Chromium",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.converter = converter
    app.state.browser_error = None

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # ========================================================================
    # Error rendering: every failure is {"error": message}
    # ========================================================================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    # ========================================================================
    # Helpers
    # ========================================================================

    async def run_conversion(coro_factory, output) -> FileResponse:
        """Await a conversion and stream the PDF, deleting it once sent."""
        try:
            await coro_factory()
        except Exception as e:
            logger.error(f"Conversion error: {e}")
            remove_file(output)
            raise HTTPException(status_code=500, detail=str(e))

        if app.state.browser_error:
            logger.info("Browser recovered after failed startup")
            app.state.browser_error = None

        return FileResponse(
            output,
            media_type="application/pdf",
            filename=DOWNLOAD_FILENAME,
            background=BackgroundTask(remove_file, output),
        )

    # ========================================================================
    # Health Check Endpoint
    # ========================================================================

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """
        Health check endpoint.

        Returns HTTP 503 if Chromium failed to launch at startup and no
        conversion has succeeded since.
        """
        if app.state.browser_error:
            return JSONResponse(
                status_code=503,
                content={"status": "error", "message": f"Browser unavailable: {app.state.browser_error}"},
            )
        return HealthResponse()

    # ========================================================================
    # Conversion Endpoints
    # ========================================================================

    @app.post("/api/convert/file")
    async def convert_file(
        htmlFile: Optional[UploadFile] = File(None),
        format: Optional[str] = Form(None),
        landscape: Optional[str] = Form(None),
        scale: Optional[str] = Form(None),
        marginTop: Optional[str] = Form(None),
        marginRight: Optional[str] = Form(None),
        marginBottom: Optional[str] = Form(None),
        marginLeft: Optional[str] = Form(None),
    ):
        """
        Convert an uploaded HTML file (multipart field ``htmlFile``).

        Raises:
            HTTPException: 400 for missing or non-HTML uploads, 413 for
                oversized uploads, 500 for conversion failures
        """
        if htmlFile is None or not htmlFile.filename:
            raise HTTPException(status_code=400, detail="No file uploaded")

        if not is_html_upload(htmlFile.filename, htmlFile.content_type):
            raise HTTPException(status_code=400, detail="Only HTML files are allowed")

        content = await htmlFile.read(settings.max_upload_bytes + 1)
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(status_code=413, detail="File too large")

        options: ConversionOptions = parse_options({
            "format": format,
            "landscape": landscape,
            "scale": scale,
            "marginTop": marginTop,
            "marginRight": marginRight,
            "marginBottom": marginBottom,
            "marginLeft": marginLeft,
        })

        staged_upload = upload_path(settings, htmlFile.filename)
        staged_upload.parent.mkdir(parents=True, exist_ok=True)
        staged_upload.write_bytes(content)
        output = output_path(settings)

        logger.info(f"Converting uploaded file {htmlFile.filename} (format={options.format})")
        try:
            return await run_conversion(
                lambda: converter.convert_file(staged_upload, output, options), output
            )
        finally:
            remove_file(staged_upload)

    @app.post("/api/convert/url")
    async def convert_url(request: UrlConvertRequest):
        """Fetch a URL, snapshot the rendered page and convert it."""
        if not request.url:
            raise HTTPException(status_code=400, detail="URL is required")

        if not is_valid_url(request.url):
            raise HTTPException(status_code=400, detail="Invalid URL format")

        options = parse_options(request)
        output = output_path(settings)

        logger.info(f"Converting URL {request.url} (format={options.format})")
        return await run_conversion(
            lambda: converter.convert_url(request.url, output, options), output
        )

    @app.post("/api/convert/html")
    async def convert_html(request: HtmlConvertRequest):
        """Convert raw HTML content."""
        if not request.htmlContent or not request.htmlContent.strip():
            raise HTTPException(status_code=400, detail="HTML content is required")

        options = parse_options(request)
        output = output_path(settings)

        logger.info(f"Converting raw HTML ({len(request.htmlContent)} chars, format={options.format})")
        return await run_conversion(
            lambda: converter.convert_html(request.htmlContent, output, options), output
        )

    return app


app = create_app()
