"""
Unit tests for HTML preparation.

Tests lang/charset markers, style block construction and document wrapping.
"""

from html_pdf_service.geometry import resolve_geometry
from html_pdf_service.models import ConversionOptions, Margins
from html_pdf_service.preprocess import (
    CHARSET_RE,
    HEAD_OPEN_RE,
    build_style_block,
    ensure_charset,
    ensure_lang,
    has_head,
    prepare_html,
)

FULL_DOC = (
    "<!DOCTYPE html>\n<html>\n<head>\n<title>Report</title>\n"
    "<link rel=\"stylesheet\" href=\"site.css\">\n</head>\n"
    "<body><h1>नमस्ते</h1></body>\n</html>"
)


def _no_hindi() -> ConversionOptions:
    return ConversionOptions().merged({"font_support": {"hindi": False}})


class TestFragmentWrapping:
    """Documents without a head section are wrapped."""

    def test_fragment_gets_single_head_with_charset_and_style(self):
        fragment = "<h1>Hi</h1><p>Body text</p>"
        html = prepare_html(fragment, ConversionOptions())

        assert len(HEAD_OPEN_RE.findall(html)) == 1
        assert '<meta charset="UTF-8">' in html
        assert 'data-pdf-converter="print"' in html
        assert html.startswith("<!DOCTYPE html>")

    def test_fragment_content_is_unmodified_inside_body(self):
        fragment = "<div class='x'>  <b>keep   me</b>\n</div>"
        html = prepare_html(fragment, ConversionOptions())

        body = html.split("<body>", 1)[1].rsplit("</body>", 1)[0]
        assert body.strip("\n") == fragment

    def test_html_without_head_is_wrapped(self):
        source = "<html><body><h1>Hi</h1></body></html>"
        html = prepare_html(source, ConversionOptions())

        assert len(HEAD_OPEN_RE.findall(html)) == 1
        assert source in html

    def test_wrapper_lang_follows_font_support(self):
        assert '<html lang="hi">' in prepare_html("<p>x</p>", ConversionOptions())
        assert "<html>" in prepare_html("<p>x</p>", _no_hindi())

    def test_input_is_not_mutated(self):
        source = "<p>x</p>"
        prepare_html(source, ConversionOptions())
        assert source == "<p>x</p>"


class TestExistingHead:
    """Documents with a head keep their content."""

    def test_head_content_preserved_and_style_before_close(self):
        html = prepare_html(FULL_DOC, ConversionOptions())

        assert "<title>Report</title>" in html
        assert '<link rel="stylesheet" href="site.css">' in html
        assert "<h1>नमस्ते</h1>" in html
        style_end = html.index("</style>") + len("</style>")
        assert html[style_end:].startswith("</head>")

    def test_charset_inserted_after_head_open(self):
        html = prepare_html(FULL_DOC, ConversionOptions())
        assert '<head>\n<meta charset="UTF-8">' in html

    def test_lang_added_when_missing(self):
        html = prepare_html(FULL_DOC, ConversionOptions())
        assert '<html lang="hi">' in html

    def test_existing_lang_preserved(self):
        source = FULL_DOC.replace("<html>", '<html lang="en">')
        html = prepare_html(source, ConversionOptions())
        assert '<html lang="en">' in html
        assert 'lang="hi"' not in html.split("<head>")[0]

    def test_no_lang_without_font_support(self):
        html = prepare_html(FULL_DOC, _no_hindi())
        assert "<html>" in html
        assert '<meta charset="UTF-8">' in html

    def test_second_pass_is_idempotent(self):
        once = prepare_html(FULL_DOC, ConversionOptions())
        twice = prepare_html(once, ConversionOptions())

        assert twice == once
        assert len(CHARSET_RE.findall(twice)) == 1
        assert twice.count('lang="hi"') == once.count('lang="hi"')
        assert twice.count('data-pdf-converter="print"') == 1

    def test_second_pass_replaces_style_block(self):
        once = prepare_html(FULL_DOC, ConversionOptions())
        slide = prepare_html(once, ConversionOptions(format="PPT_16_9"), resolve_geometry("PPT_16_9"))

        assert slide.count('data-pdf-converter="print"') == 1
        assert "size: 13.333in 7.5in" in slide


class TestStructuralDetection:
    """Tag detection is case-insensitive and tolerates attributes."""

    def test_uppercase_and_attribute_bearing_head(self):
        source = '<HTML class="deck"><HEAD data-x="1"><TITLE>t</TITLE></HEAD><BODY>b</BODY></HTML>'
        html = prepare_html(source, ConversionOptions())

        assert has_head(source)
        assert '<HTML lang="hi" class="deck">' in html
        assert '<HEAD data-x="1">\n<meta charset="UTF-8">' in html
        assert html.index("</style>") < html.index("</HEAD>")
        assert "<!DOCTYPE html>" not in html

    def test_header_element_is_not_a_head(self):
        source = "<header><h1>Title</h1></header>"
        assert not has_head(source)
        html = prepare_html(source, ConversionOptions())
        assert len(HEAD_OPEN_RE.findall(html)) == 1
        assert source in html

    def test_omitted_head_close_keeps_document(self):
        source = "<!DOCTYPE html><html><head><title>t</title><body><p>x</p></body></html>"
        html = prepare_html(source, ConversionOptions())

        assert has_head(source)
        assert "<!DOCTYPE html>" not in html.split("<html", 1)[1]
        assert len(HEAD_OPEN_RE.findall(html)) == 1
        assert html.index("</style>") < html.index("<body>")
        assert html.index("<title>t</title>") < html.index("<style")

    def test_omitted_head_close_and_body(self):
        source = "<html><head><title>t</title><p>x</p>"
        html = prepare_html(source, ConversionOptions())

        assert len(HEAD_OPEN_RE.findall(html)) == 1
        assert html.count('data-pdf-converter="print"') == 1
        assert html.index("<head>") < html.index("<style") < html.index("<title>")
        assert prepare_html(html, ConversionOptions()) == html

    def test_http_equiv_charset_is_respected(self):
        source = '<html><head><meta http-equiv="Content-Type" content="text/html; charset=utf-8"></head><body></body></html>'
        assert ensure_charset(source) == source

    def test_lang_attribute_with_spaces_is_respected(self):
        source = "<html lang = 'mr'><head></head></html>"
        assert ensure_lang(source) == source

    def test_ensure_lang_without_html_tag(self):
        assert ensure_lang("<p>x</p>") == "<p>x</p>"


class TestStyleBlock:
    """Tests for build_style_block."""

    def test_paper_format_uses_caller_margins(self):
        options = ConversionOptions(margin=Margins(top="1in", right="2in", bottom="3in", left="4in"))
        css = build_style_block(options)
        assert "margin: 1in 2in 3in 4in;" in css
        assert "size:" not in css

    def test_slide_format_uses_exact_size_and_zero_margin(self):
        geometry = resolve_geometry("PPT_4_3")
        css = build_style_block(ConversionOptions(format="PPT_4_3"), geometry)
        assert "size: 10in 7.5in;" in css
        assert "margin: 0;" in css
        assert "width: 960px;" in css
        assert "height: 720px;" in css

    def test_print_safety_rules_always_present(self):
        css = build_style_block(_no_hindi())
        assert "print-color-adjust: exact !important;" in css
        assert "page-break-inside: avoid;" in css

    def test_devanagari_fonts_only_with_font_support(self):
        assert "Noto+Sans+Devanagari" in build_style_block(ConversionOptions())
        assert ':lang(hi)' in build_style_block(ConversionOptions())
        assert "Noto+Sans+Devanagari" not in build_style_block(_no_hindi())

    def test_font_imports_lead_the_stylesheet(self):
        css = build_style_block(ConversionOptions())
        body = css.split(">", 1)[1]
        assert body.lstrip().startswith("@import")
