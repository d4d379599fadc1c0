from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from guobiao_assist.errors import RecognitionError


def prepare_image(image_bytes: bytes, max_edge: int = 1024, quality: int = 80) -> bytes:
    """Shrink an upload so its long edge is at most ``max_edge`` and re-encode as JPEG."""
    if not image_bytes:
        raise RecognitionError("image is required")
    out = BytesIO()
    try:
        with Image.open(BytesIO(image_bytes)) as img, img.convert("RGB") as rgb:
            rgb.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)
            rgb.save(out, format="JPEG", quality=quality)
    except Image.DecompressionBombError as exc:
        raise RecognitionError("image is too large") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise RecognitionError("invalid image file") from exc
    return out.getvalue()
