import base64
import io
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

import image_processor
from conftest import make_png
from image_processor import (
    TEMPLATE_HEIGHT,
    TEMPLATE_WIDTH,
    THUMBNAIL_WIDTH,
    composite_text_overlay,
    convert_image,
    derive_thumbnail,
    fetch_bytes,
    get_image_dimensions,
    hex_to_rgb,
    normalize_for_print,
    process_downloaded,
    process_for_catalog,
    render_gradient_placeholder,
    sanitize_overlay_text,
)
from pipeline_errors import DownloadFailed, InvalidArgument, MalformedInput


def _open(data):
    return Image.open(io.BytesIO(data))


def _close(actual, expected, tolerance=6):
    return all(abs(a - e) <= tolerance for a, e in zip(actual, expected))


def test_print_canvas_is_148mm_at_300dpi():
    assert TEMPLATE_WIDTH == TEMPLATE_HEIGHT == 1748


def test_normalize_cover_fits_non_square_input():
    normalized = normalize_for_print(make_png(1024, 1792))
    image = _open(normalized)
    assert image.format == "PNG"
    assert image.size == (TEMPLATE_WIDTH, TEMPLATE_HEIGHT)
    # Cover never letterboxes, so the corners keep the source colour
    assert _close(image.convert("RGB").getpixel((0, 0)), (200, 120, 40))


def test_thumbnail_preserves_aspect_ratio():
    thumbnail = _open(derive_thumbnail(make_png(800, 400)))
    assert thumbnail.width == THUMBNAIL_WIDTH
    assert abs(thumbnail.height - 200) <= 1


def test_thumbnail_rejects_non_positive_width():
    with pytest.raises(InvalidArgument):
        derive_thumbnail(make_png(10, 10), target_width=0)


def test_process_downloaded_produces_both_renditions():
    processed = process_downloaded(make_png(1024, 1024))
    assert _open(processed.full_size).size == (1748, 1748)
    assert _open(processed.thumbnail).size == (400, 400)


def test_process_for_catalog_accepts_data_urls():
    url = "data:image/png;base64," + base64.b64encode(make_png(1024, 1024)).decode("ascii")
    processed = process_for_catalog(url)
    assert get_image_dimensions(processed.full_size).width == 1748
    assert get_image_dimensions(processed.thumbnail).width == 400


def test_fetch_bytes_decodes_data_url():
    payload = make_png(4, 4)
    url = "data:image/png;base64," + base64.b64encode(payload).decode("ascii")
    assert fetch_bytes(url) == payload


def test_fetch_bytes_reports_http_status(monkeypatch):
    response = MagicMock(ok=False, status_code=404, reason="Not Found")
    monkeypatch.setattr(image_processor.requests, "get", MagicMock(return_value=response))

    with pytest.raises(DownloadFailed) as excinfo:
        fetch_bytes("https://images.example.com/missing.png")
    assert excinfo.value.status_code == 404
    assert "404" in str(excinfo.value)


def test_fetch_bytes_wraps_transport_errors(monkeypatch):
    get = MagicMock(side_effect=requests.ConnectionError("connection reset"))
    monkeypatch.setattr(image_processor.requests, "get", get)

    with pytest.raises(DownloadFailed) as excinfo:
        fetch_bytes("https://images.example.com/a.png")
    assert excinfo.value.status_code is None


def test_fetch_bytes_returns_body(monkeypatch):
    response = MagicMock(ok=True, status_code=200, content=b"image-bytes")
    monkeypatch.setattr(image_processor.requests, "get", MagicMock(return_value=response))
    assert fetch_bytes("https://images.example.com/a.png") == b"image-bytes"


def test_gradient_placeholder_uses_palette_roles():
    colors = ["#FFFFFF", "#F5F5F5", "#D4AF37"]
    image = _open(render_gradient_placeholder(colors)).convert("RGB")

    assert image.size == (1748, 1748)
    assert _close(image.getpixel((5, 5)), hex_to_rgb(colors[0]))
    assert _close(image.getpixel((874, 874)), hex_to_rgb(colors[1]))


def test_gradient_placeholder_scales_to_requested_size():
    image = _open(render_gradient_placeholder(["#1C1917", "#44403C", "#D4AF37"], width=400, height=300))
    assert image.size == (400, 300)


def test_gradient_placeholder_rejects_empty_canvas():
    with pytest.raises(InvalidArgument):
        render_gradient_placeholder(["#FFFFFF", "#F5F5F5", "#D4AF37"], width=0, height=10)


def test_text_overlay_requires_title():
    with pytest.raises(MalformedInput):
        composite_text_overlay(make_png(200, 200), {"title": "  "})


@pytest.mark.parametrize("text", [{"subtitle": "Save the date"}, {"title": None}, {"title": "\n\t"}])
def test_text_overlay_missing_title_is_malformed_input(text):
    with pytest.raises(MalformedInput):
        composite_text_overlay(make_png(100, 100), text)


def test_text_overlay_whitens_centre_panel():
    dark = make_png(400, 400, color=(10, 10, 10))
    result = _open(composite_text_overlay(dark, {"title": "Anna & Ben", "date": "June 1"})).convert("RGB")

    assert result.size == (400, 400)
    assert result.getpixel((60, 110))[0] > 200
    assert _close(result.getpixel((10, 10)), (10, 10, 10))


def test_sanitize_overlay_text_strips_control_characters():
    assert sanitize_overlay_text("Line one\nLine\x00two\t") == "Line one Line two"


def test_convert_image_formats():
    png = make_png(32, 32)
    assert _open(convert_image(png, "jpeg")).format == "JPEG"
    assert _open(convert_image(png, "WEBP")).format == "WEBP"
    with pytest.raises(InvalidArgument):
        convert_image(png, "tiff")
