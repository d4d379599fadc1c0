from io import BytesIO

from PIL import Image


def make_image(width: int = 64, height: int = 32, fmt: str = "PNG") -> bytes:
    out = BytesIO()
    Image.new("RGB", (width, height), color=(20, 120, 40)).save(out, format=fmt)
    return out.getvalue()
