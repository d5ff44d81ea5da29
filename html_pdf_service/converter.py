"""
HTML to PDF conversion on top of the shared Chromium session.

All entry points (raw HTML, local file, remote URL) end up in
``HtmlToPdfConverter.convert_html``, which prepares the document, stages it
as a temporary file, prints it with Chromium and removes the staged file
whether printing succeeded or not.
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .browser import DEFAULT_VIEWPORT, BrowserSession
from .config import ConverterSettings, get_settings
from .files import remove_file
from .geometry import PageGeometry, resolve_geometry
from .models import ConversionOptions, ConversionResult, Margins
from .preprocess import prepare_html, slide_print_override_css

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
OptionsLike = Union[ConversionOptions, Dict[str, Any], None]

PAGE_SELECTOR = ".page"
FONTS_READY_JS = "() => document.fonts ? document.fonts.ready.then(() => true) : true"
SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"


def build_pdf_options(options: ConversionOptions, geometry: Optional[PageGeometry] = None) -> Dict[str, Any]:
    """
    Translate conversion options into keyword arguments for ``page.pdf()``.

    Slide geometry replaces the paper format with an explicit width/height
    and forces zero margins; otherwise the format name is handed to Chromium.
    """
    margin = Margins.zero() if geometry else options.margin
    pdf_options: Dict[str, Any] = {
        "landscape": options.landscape,
        "margin": margin.model_dump(),
        "print_background": options.print_background,
        "prefer_css_page_size": options.prefer_css_page_size,
        "display_header_footer": options.display_header_footer,
        "scale": options.scale,
    }
    if geometry:
        pdf_options["width"] = geometry.width_in
        pdf_options["height"] = geometry.height_in
    else:
        pdf_options["format"] = options.format
    return pdf_options


class HtmlToPdfConverter:
    """
    Converts HTML, HTML files and URLs to PDF.

    The converter does not own a browser of its own; it borrows tabs from the
    injected BrowserSession, which is started on first use.
    """

    def __init__(
        self,
        session: BrowserSession,
        settings: Optional[ConverterSettings] = None,
        default_options: Optional[ConversionOptions] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.default_options = default_options or ConversionOptions()

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Accept-Language": self.settings.accept_language}

    def _staging_path(self) -> Path:
        return self.settings.temp_dir / f"temp_{uuid.uuid4()}.html"

    async def convert_html(
        self,
        html: str,
        output_path: PathLike,
        options: OptionsLike = None,
    ) -> ConversionResult:
        """
        Render an HTML document or fragment to a PDF file.

        Args:
            html: HTML document or fragment
            output_path: Where the PDF is written
            options: Overrides merged over the converter defaults

        Returns:
            ConversionResult with the size of the written file

        Raises:
            Whatever Playwright or the filesystem raised; the staged file is
            removed before the error propagates.
        """
        options = self.default_options.merged(options)
        geometry = resolve_geometry(options.format)
        if geometry:
            options = options.model_copy(update={"margin": Margins.zero()})

        output_path = Path(output_path)
        pdf_options = build_pdf_options(options, geometry)
        processed_html = prepare_html(html, options, geometry)
        staged_path = self._staging_path()

        logger.info(f"Starting PDF conversion (format={options.format}, landscape={options.landscape})")

        try:
            staged_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            staged_path.write_text(processed_html, encoding="utf-8")

            viewport = geometry.viewport if geometry else DEFAULT_VIEWPORT
            async with self.session.new_page(viewport=viewport, extra_http_headers=self._headers) as page:
                await page.goto(
                    staged_path.resolve().as_uri(),
                    wait_until="networkidle",
                    timeout=self.settings.navigation_timeout_ms,
                )

                if geometry:
                    await self._prepare_slide_page(page, geometry)

                await self._wait_for_fonts(page)
                pdf_bytes = await page.pdf(**pdf_options)

            output_path.write_bytes(pdf_bytes)

        except Exception as e:
            logger.error(f"PDF conversion failed: {e}")
            raise

        finally:
            remove_file(staged_path)

        file_size = output_path.stat().st_size
        logger.info(f"PDF generated successfully: {output_path.name} ({file_size / 1024:.2f} KB)")

        return ConversionResult(
            success=True,
            output_path=str(output_path),
            file_size=file_size,
            page_count=1,
        )

    async def convert_file(
        self,
        input_path: PathLike,
        output_path: PathLike,
        options: OptionsLike = None,
    ) -> ConversionResult:
        """Convert a local HTML file (read as UTF-8, undecodable bytes replaced)."""
        html = Path(input_path).read_text(encoding="utf-8", errors="replace")
        return await self.convert_html(html, output_path, options)

    async def convert_url(
        self,
        url: str,
        output_path: PathLike,
        options: OptionsLike = None,
    ) -> ConversionResult:
        """
        Convert a remote page.

        The page is loaded once until the network is idle and its rendered
        markup is snapshotted; printing then works on that snapshot.
        """
        logger.info(f"Fetching {url}")
        async with self.session.new_page(extra_http_headers=self._headers) as page:
            await page.goto(url, wait_until="networkidle", timeout=self.settings.url_timeout_ms)
            html = await page.content()
        return await self.convert_html(html, output_path, options)

    async def close(self) -> None:
        await self.session.close()

    async def _prepare_slide_page(self, page, geometry: PageGeometry) -> None:
        await page.add_style_tag(content=slide_print_override_css(geometry))

        try:
            await page.wait_for_selector(PAGE_SELECTOR, timeout=self.settings.selector_timeout_ms)
        except Exception as e:
            logger.warning(f"{PAGE_SELECTOR} selector not found, continuing anyway: {e}")

        # Lazy content below the fold
        await page.evaluate(SCROLL_TO_BOTTOM_JS)
        await page.emulate_media(media="print")

    async def _wait_for_fonts(self, page) -> None:
        try:
            await page.wait_for_function(FONTS_READY_JS, timeout=self.settings.font_timeout_ms)
        except Exception as e:
            logger.warning(f"Font loading timeout (continuing anyway): {e}")

        if self.settings.font_settle_ms:
            await page.wait_for_timeout(self.settings.font_settle_ms)
