import io

import numpy as np
import qrcode
from PIL import Image

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def qr_image(data: str, size: int, opacity: float, color=BLACK) -> Image.Image:
    """
    RGBA QR code of size x size.

    Code modules get `color` at the given opacity; light modules and the quiet
    zone are fully transparent, so no translucent box shows around the code.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)
    base = qr.make_image(fill_color="black", back_color="white").convert("L")
    base = base.resize((size, size), Image.NEAREST)

    luma = np.asarray(base)
    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    code = luma < 128
    rgba[code, 0] = color[0]
    rgba[code, 1] = color[1]
    rgba[code, 2] = color[2]
    rgba[code, 3] = int(round(255 * opacity))
    return Image.fromarray(rgba)


def qr_png(data: str, size: int, opacity: float, color=BLACK) -> bytes:
    buf = io.BytesIO()
    qr_image(data, size, opacity, color).save(buf, format="PNG")
    return buf.getvalue()
