import io

from PIL import Image, ImageOps, UnidentifiedImageError

from .. import config
from ..exceptions import ImageDecodeError


def decode_image(buf: bytes) -> Image.Image:
    """
    Decodes in-memory bytes as an image, guessing the format from content.
    Pixel data is loaded eagerly so truncated files fail here, not later.
    """
    try:
        img = Image.open(io.BytesIO(buf))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise ImageDecodeError(str(e)) from e
    return img


def make_thumbnail(img: Image.Image,
                   size=config.THUMBNAIL_SIZE,
                   quality: int = config.THUMBNAIL_QUALITY) -> bytes:
    """
    Fits the image into a `size` bounding box, keeping aspect ratio, and
    returns it encoded as JPEG. EXIF orientation is applied first.
    """
    try:
        thumb = ImageOps.exif_transpose(img).convert("RGB")
        # BICUBIC is the Catmull-Rom filter
        thumb.thumbnail(size, Image.Resampling.BICUBIC)

        out = io.BytesIO()
        thumb.save(out, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise ImageDecodeError(f"thumbnail failed: {e}") from e
    return out.getvalue()
