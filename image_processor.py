"""
Image post-processing for generated templates.

Synthesized artwork is normalized to the print canvas (148 mm square at
300 DPI) and a web thumbnail is derived from the same download. When
synthesis is skipped, a gradient placeholder is rendered locally instead.
"""

import base64
import io
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Sequence, Tuple, Union
from urllib.parse import unquote_to_bytes

import requests
from PIL import Image, ImageDraw, ImageFont, ImageOps
from pydantic import BaseModel

from pipeline_errors import DownloadFailed, InvalidArgument, MalformedInput


logger = logging.getLogger(__name__)

PRINT_DPI = 300
PRINT_SIZE_MM = 148


def mm_to_pixels(mm: float, dpi: int = PRINT_DPI) -> int:
    """Convert millimeters to pixels at given DPI"""
    return int((mm / 25.4) * dpi)


# 148mm x 148mm at 300 DPI = 1748px x 1748px
TEMPLATE_WIDTH = mm_to_pixels(PRINT_SIZE_MM)
TEMPLATE_HEIGHT = mm_to_pixels(PRINT_SIZE_MM)
THUMBNAIL_WIDTH = 400

# Opacities keep the placeholder faint enough for real text to sit on top
BORDER_OPACITY = 0.3
CORNER_OPACITY = 0.4
GUIDE_LINE_OPACITY = 0.5
CAPTION_OPACITY = 0.15
PANEL_OPACITY = 0.85

PLACEHOLDER_CAPTIONS = ("[Event Title]", "[Date & Time]", "[Location]")

FONT_PATHS = {
    'Script': ['/usr/share/fonts/truetype/liberation/LiberationSerif-Italic.ttf',
               '/usr/share/fonts/truetype/dejavu/DejaVuSerif-Italic.ttf'],
    'Serif': ['/usr/share/fonts/truetype/liberation/LiberationSerif-Regular.ttf',
              '/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf'],
    'Serif-Bold': ['/usr/share/fonts/truetype/liberation/LiberationSerif-Bold.ttf',
                   '/usr/share/fonts/truetype/dejavu/DejaVuSerif-Bold.ttf'],
    'Sans-Serif': ['/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
                   '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf'],
}


class ImageDimensions(BaseModel):
    width: int
    height: int


class ProcessedImage(BaseModel):
    full_size: bytes
    thumbnail: bytes


class OverlayText(BaseModel):
    # Checked in composite_text_overlay so a missing title raises MalformedInput
    title: Optional[str] = None
    subtitle: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None


class OverlayStyle(BaseModel):
    title_color: str = "#1C1917"
    text_color: str = "#44403C"
    font: str = "Serif"


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert hex color to RGB tuple"""
    hex_color = hex_color.lstrip('#')
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def hex_to_rgba(hex_color: str, opacity: float = 1.0) -> tuple:
    return hex_to_rgb(hex_color) + (int(round(opacity * 255)),)


def get_font_for_type(font_type: str, size_px: int) -> ImageFont.ImageFont:
    """
    Get appropriate font for the given type.
    Falls back to Pillow's bundled font if no system font is available.
    """
    size_px = max(1, int(size_px))
    for font_path in FONT_PATHS.get(font_type, FONT_PATHS['Serif']):
        try:
            return ImageFont.truetype(font_path, size_px)
        except OSError:
            continue
    return ImageFont.load_default(size=size_px)


class PillowImageBackend:
    """Narrow image interface the pipeline depends on: resize, composite, metadata"""

    def open(self, data: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image

    def metadata(self, data: bytes) -> ImageDimensions:
        with Image.open(io.BytesIO(data)) as image:
            return ImageDimensions(width=image.width, height=image.height)

    def resize(self, data: bytes, width: int, height: int, fit: str = "cover") -> Image.Image:
        """
        Resize to width x height.

        "cover" fills the box and crops the centred overflow, "contain"
        letterboxes, "fill" stretches.
        """
        image = self.open(data)
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() or image.mode == "P" else "RGB")

        if fit == "cover":
            return ImageOps.fit(image, (width, height), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
        if fit == "contain":
            return ImageOps.pad(image, (width, height), method=Image.Resampling.LANCZOS, color=(255, 255, 255))
        if fit == "fill":
            return image.resize((width, height), Image.Resampling.LANCZOS)
        raise InvalidArgument(f"Unknown fit mode: {fit}")

    def composite(self, base: Image.Image, overlay: Image.Image) -> Image.Image:
        """Alpha-composite an RGBA overlay of the same size onto base"""
        return Image.alpha_composite(base.convert("RGBA"), overlay)

    def encode(self, image: Image.Image, fmt: str = "PNG", **options) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format=fmt, **options)
        return buffer.getvalue()


_backend = PillowImageBackend()


def fetch_bytes(url: str, timeout: float = 30) -> bytes:
    """
    Download an image. data: URLs (inline synthesis output) are decoded locally.

    Raises:
        DownloadFailed: On a non-success response or transport error
    """
    if url.startswith("data:"):
        header, sep, payload = url.partition(",")
        if not sep:
            raise DownloadFailed("Malformed data URL")
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=True)
            return unquote_to_bytes(payload)
        except ValueError as e:
            raise DownloadFailed(f"Malformed data URL: {e}")

    headers = {
        'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'
    }
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise DownloadFailed(f"Failed to download image: {type(e).__name__}: {e}")

    if not response.ok:
        raise DownloadFailed(
            f"Failed to download image: {response.status_code} {response.reason}",
            status_code=response.status_code,
        )
    return response.content


def normalize_for_print(data: bytes, backend: PillowImageBackend = _backend) -> bytes:
    """Cover-fit to the print canvas; artwork must bleed to the card edge, so never letterbox"""
    image = backend.resize(data, TEMPLATE_WIDTH, TEMPLATE_HEIGHT, fit="cover")
    return backend.encode(image, "PNG", compress_level=6, dpi=(PRINT_DPI, PRINT_DPI))


def derive_thumbnail(
    data: bytes,
    target_width: int = THUMBNAIL_WIDTH,
    backend: PillowImageBackend = _backend
) -> bytes:
    """
    Web thumbnail preserving the source aspect ratio.

    Encoded as a palette PNG at maximum compression - small files matter more
    than print fidelity here.
    """
    if target_width < 1:
        raise InvalidArgument("target_width must be positive")
    dimensions = backend.metadata(data)
    aspect_ratio = (dimensions.height or 1) / (dimensions.width or 1)
    target_height = max(1, round(target_width * aspect_ratio))

    image = backend.resize(data, target_width, target_height, fit="cover")
    image = image.quantize(colors=256, method=Image.Quantize.FASTOCTREE)
    return backend.encode(image, "PNG", optimize=True, compress_level=9)


def process_for_catalog(url: str, thumbnail_width: int = THUMBNAIL_WIDTH) -> ProcessedImage:
    """Download once, then derive the print and thumbnail renditions"""
    original = fetch_bytes(url)
    logger.info(f"[POST-PROCESS] Downloaded {len(original)} bytes")
    return process_downloaded(original, thumbnail_width)


def process_downloaded(original: bytes, thumbnail_width: int = THUMBNAIL_WIDTH) -> ProcessedImage:
    """
    Normalize and thumbnail concurrently.

    The thumbnail is derived from the original download rather than the
    normalized image to avoid compounding resize artifacts.
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        full_size_future = executor.submit(normalize_for_print, original)
        thumbnail_future = executor.submit(derive_thumbnail, original, thumbnail_width)
        return ProcessedImage(
            full_size=full_size_future.result(),
            thumbnail=thumbnail_future.result(),
        )


def _radial_gradient(center_color: str, edge_color: str, width: int, height: int) -> Image.Image:
    # Pillow's 256px gradient reaches white at radius 128; scaling it to 140%
    # of the canvas puts the edge colour at 70% of the canvas size.
    mask_size = (max(1, int(width * 1.4)), max(1, int(height * 1.4)))
    mask = Image.radial_gradient("L").resize(mask_size, Image.Resampling.BILINEAR)
    left = (mask_size[0] - width) // 2
    top = (mask_size[1] - height) // 2
    mask = mask.crop((left, top, left + width, top + height))

    center = Image.new("RGB", (width, height), hex_to_rgb(center_color))
    edge = Image.new("RGB", (width, height), hex_to_rgb(edge_color))
    return Image.composite(edge, center, mask)


def render_gradient_placeholder(
    colors: Sequence[str],
    width: int = TEMPLATE_WIDTH,
    height: int = TEMPLATE_HEIGHT,
    backend: PillowImageBackend = _backend
) -> bytes:
    """
    Render a local stand-in background when AI synthesis is skipped.

    colors[0] is the outer background, colors[1] the inner background and
    colors[2] the accent used for border, corner dots, guide lines and
    placeholder captions. Offsets are laid out for the 1748px canvas and
    scale with smaller or larger sizes.
    """
    if width < 1 or height < 1:
        raise InvalidArgument("Placeholder dimensions must be positive")
    edge_color = colors[0] if len(colors) > 0 else "#FFFFFF"
    center_color = colors[1] if len(colors) > 1 else (colors[0] if colors else "#F5F5F5")
    accent_color = colors[2] if len(colors) > 2 else edge_color

    scale = min(width, height) / TEMPLATE_WIDTH

    def px(value: float) -> int:
        return int(round(value * scale))

    stroke = max(1, px(2))
    base = _radial_gradient(center_color, edge_color, width, height)
    overlay = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    # Decorative border
    inset = px(60)
    if width - inset > inset and height - inset > inset:
        draw.rectangle(
            [inset, inset, width - inset, height - inset],
            outline=hex_to_rgba(accent_color, BORDER_OPACITY),
            width=stroke
        )

    # Corner decorations
    dot_offset, radius = px(80), max(1, px(8))
    for cx, cy in [
        (dot_offset, dot_offset),
        (width - dot_offset, dot_offset),
        (dot_offset, height - dot_offset),
        (width - dot_offset, height - dot_offset),
    ]:
        draw.ellipse(
            [cx - radius, cy - radius, cx + radius, cy + radius],
            fill=hex_to_rgba(accent_color, CORNER_OPACITY)
        )

    # Guide lines above the title and below the location
    mid_x, mid_y = width / 2, height / 2
    for y in (mid_y - px(200), mid_y + px(300)):
        draw.line(
            [(mid_x - px(150), y), (mid_x + px(150), y)],
            fill=hex_to_rgba(accent_color, GUIDE_LINE_OPACITY),
            width=max(1, px(1))
        )

    # Placeholder text area indicators
    caption_layout = [
        (PLACEHOLDER_CAPTIONS[0], 'Serif', 72, mid_y - px(100)),
        (PLACEHOLDER_CAPTIONS[1], 'Sans-Serif', 36, mid_y + px(50)),
        (PLACEHOLDER_CAPTIONS[2], 'Sans-Serif', 28, mid_y + px(120)),
    ]
    for caption, font_type, size, y in caption_layout:
        draw.text(
            (mid_x, y),
            caption,
            font=get_font_for_type(font_type, max(1, px(size))),
            fill=hex_to_rgba(accent_color, CAPTION_OPACITY),
            anchor="ms"
        )

    composed = backend.composite(base, overlay).convert("RGB")
    return backend.encode(composed, "PNG", compress_level=6, dpi=(PRINT_DPI, PRINT_DPI))


def sanitize_overlay_text(text: str) -> str:
    """Collapse line breaks and drop control characters so each field renders on one line"""
    return re.sub(r"[\x00-\x1f\x7f]+", " ", text).strip()


def composite_text_overlay(
    data: bytes,
    text: Union[OverlayText, Dict[str, str]],
    style: Union[OverlayStyle, Dict[str, str], None] = None,
    backend: PillowImageBackend = _backend
) -> bytes:
    """
    Preview sample text on a background.

    Draws a semi-opaque rounded white panel over the centre of the image and
    centres the title, subtitle, date and location inside it.

    Raises:
        MalformedInput: If the title is empty
    """
    if isinstance(text, dict):
        text = OverlayText(**text)
    if style is None:
        style = OverlayStyle()
    elif isinstance(style, dict):
        style = OverlayStyle(**style)

    title = sanitize_overlay_text(text.title or "")
    if not title:
        raise MalformedInput("Text overlay requires a non-empty title")

    base = backend.open(data)
    width, height = base.size
    scale = width / TEMPLATE_WIDTH

    def font_px(size: int) -> int:
        return max(8, int(round(size * scale)))

    overlay = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    draw.rounded_rectangle(
        [width * 0.1, height * 0.25, width * 0.9, height * 0.75],
        radius=max(1, int(round(20 * scale))),
        fill=(255, 255, 255, int(round(PANEL_OPACITY * 255)))
    )

    title_font_type = f"{style.font}-Bold" if f"{style.font}-Bold" in FONT_PATHS else style.font
    lines: Tuple = (
        (text.subtitle, style.font, 36, style.text_color, 0.35),
        (title, title_font_type, 64, style.title_color, 0.45),
        (text.date, 'Sans-Serif', 32, style.text_color, 0.55),
        (text.location, 'Sans-Serif', 28, style.text_color, 0.62),
    )
    for content, font_type, size, color, y_ratio in lines:
        if not content:
            continue
        content = sanitize_overlay_text(content)
        if not content:
            continue
        draw.text(
            (width / 2, height * y_ratio),
            content,
            font=get_font_for_type(font_type, font_px(size)),
            fill=hex_to_rgba(color),
            anchor="ms"
        )

    composed = backend.composite(base, overlay)
    return backend.encode(composed, "PNG")


def get_image_dimensions(data: bytes) -> ImageDimensions:
    return _backend.metadata(data)


def convert_image(data: bytes, fmt: str) -> bytes:
    """
    Re-encode an image as png, jpeg or webp.

    Raises:
        InvalidArgument: If the format is not supported
    """
    image = _backend.open(data)
    fmt = fmt.lower()
    if fmt == "jpeg":
        return _backend.encode(image.convert("RGB"), "JPEG", quality=90)
    if fmt == "webp":
        return _backend.encode(image, "WEBP", quality=85)
    if fmt == "png":
        return _backend.encode(image, "PNG", compress_level=6)
    raise InvalidArgument(f"Unsupported image format: {fmt}")
