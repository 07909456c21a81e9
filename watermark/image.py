from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .ffmpegkit.colors import font_path
from .layout import WatermarkSpec
from .qr import BLACK, WHITE, qr_image

logger = logging.getLogger(__name__)

CAPTION_ALPHA = round(255 * 0.3)

_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


@dataclass
class WatermarkedImage:
    data: bytes
    content_type: str
    applied: bool


def brightness(im: Image.Image) -> float:
    """Mean luma of a 50x50 greyscale thumbnail, in [0, 1]."""
    small = im.convert("L").resize((50, 50))
    return float(np.asarray(small, dtype=np.float32).mean()) / 255.0


def qr_color_for(level: float):
    return BLACK if level > 0.5 else WHITE


def _caption_font(size: int):
    path = font_path()
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.debug("could not load %s, using default font", path)
    return ImageFont.load_default()


def caption_size(width: int, height: int) -> int:
    base = max(24.0, min(width, height) / 25)
    return int(max(10.0, max(14.0, base * 0.8) * 0.6))


def _iter_riff_chunks(data: bytes):
    pos = 12
    while pos + 8 <= len(data):
        fourcc = data[pos:pos + 4]
        (size,) = struct.unpack("<I", data[pos + 4:pos + 8])
        yield fourcc
        pos += 8 + size + (size & 1)


def _iter_png_chunks(data: bytes):
    pos = 8
    while pos + 8 <= len(data):
        (size,) = struct.unpack(">I", data[pos:pos + 4])
        ctype = data[pos + 4:pos + 8]
        yield ctype
        if ctype == b"IEND":
            return
        pos += 12 + size


def is_animated(data: bytes) -> bool:
    """
    True for multi-frame rasters, judged from the bytes:
    WebP ANIM chunk, PNG acTL chunk, GIF with more than one frame.
    """
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return any(c == b"ANIM" for c in _iter_riff_chunks(data))
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        for c in _iter_png_chunks(data):
            if c == b"acTL":
                return True
            if c == b"IDAT":
                return False
        return False
    if data[:6] in (b"GIF87a", b"GIF89a"):
        try:
            with Image.open(io.BytesIO(data)) as im:
                return bool(getattr(im, "is_animated", False))
        except (OSError, ValueError):
            return False
    return False


def sniff_content_type(data: bytes, default: str = "application/octet-stream") -> str:
    try:
        with Image.open(io.BytesIO(data)) as im:
            return _CONTENT_TYPES.get(im.format or "", default)
    except (OSError, ValueError):
        return default


class ImageWatermarker:
    """
    Per-request image stamping: alternating buyer/vendor QR grid plus a
    two-line caption, re-encoded in the source format.
    """

    def __init__(self, domain: str):
        self.domain = domain

    def apply(self, data: bytes, buyer: str, vendor: str, content_type: str | None = None) -> WatermarkedImage:
        try:
            out, ctype = self._stamp(data, buyer, vendor)
        except Exception:
            logger.warning("image watermark failed, serving original (%d bytes)", len(data), exc_info=True)
            return WatermarkedImage(data, content_type or sniff_content_type(data), False)
        return WatermarkedImage(out, ctype, True)

    def _stamp(self, data: bytes, buyer: str, vendor: str):
        with Image.open(io.BytesIO(data)) as src:
            src.load()
            fmt = (src.format or "JPEG").upper()
            has_alpha = src.mode in ("RGBA", "LA") or (src.mode == "P" and "transparency" in src.info)
            canvas = src.convert("RGBA")

        width, height = canvas.size
        spec = WatermarkSpec.for_image(width, height, self.domain, buyer, vendor)
        color = qr_color_for(brightness(canvas))

        codes = {"vendor": qr_image(spec.vendor_url, spec.cell_size, spec.opacity, color)}
        if spec.buyer_url:
            codes["buyer"] = qr_image(spec.buyer_url, spec.cell_size, spec.opacity, color)

        layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        for tile in spec.tiles(width, height):
            layer.paste(codes[tile.role], (tile.x, tile.y))

        self._draw_caption(layer, spec)
        stamped = Image.alpha_composite(canvas, layer)
        return self._encode(stamped, fmt, has_alpha)

    def _draw_caption(self, layer: Image.Image, spec: WatermarkSpec) -> None:
        size = caption_size(*layer.size)
        font = _caption_font(size)
        draw = ImageDraw.Draw(layer)
        lines = [u for u in (spec.buyer_url, spec.vendor_url) if u]
        y = 20
        for line in lines:
            draw.text((20, y), line, font=font, fill=(255, 255, 255, CAPTION_ALPHA))
            y += int(size * 1.4)

    def _encode(self, im: Image.Image, fmt: str, has_alpha: bool):
        buf = io.BytesIO()
        if fmt == "PNG":
            (im if has_alpha else im.convert("RGB")).save(buf, format="PNG", optimize=True)
        elif fmt == "WEBP":
            (im if has_alpha else im.convert("RGB")).save(buf, format="WEBP", quality=95)
        elif fmt == "GIF":
            im.convert("RGB").quantize(colors=256).save(buf, format="GIF")
        else:
            fmt = "JPEG"
            im.convert("RGB").save(buf, format="JPEG", quality=95, progressive=True, optimize=True)
        return buf.getvalue(), _CONTENT_TYPES[fmt]
