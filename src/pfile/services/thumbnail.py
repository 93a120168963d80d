"""Thumbnail derivation for pfile."""

import base64
import io
import time

from PIL import Image, ImageOps, UnidentifiedImageError

from pfile.errors import UnsupportedImageError
from ..config import get_thumbnail_max_size, get_thumbnail_quality
from ..logging_config import get_logger, log_performance

try:
    from pillow_heif import register_heif_opener  # type: ignore[import-untyped]

    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False

logger = get_logger(__name__)


class ThumbnailDeriver:
    """Produces bounded-size JPEG previews for the gallery."""

    def __init__(self, max_dimension: int | None = None, quality: int | None = None) -> None:
        """
        Initialize the deriver.

        Args:
            max_dimension: Longest thumbnail edge in pixels (THUMBNAIL_MAX_SIZE, default 200)
            quality: JPEG quality on Pillow's scale (THUMBNAIL_QUALITY, default 80)
        """
        self.max_dimension = max_dimension or get_thumbnail_max_size()
        self.quality = quality or get_thumbnail_quality()

    def decode(self, image_data: bytes, filename: str = "") -> Image.Image:
        """
        Decode raw bytes into a fully loaded image.

        Raises:
            UnsupportedImageError: If the bytes are not a decodable image
        """
        try:
            with Image.open(io.BytesIO(image_data)) as image:
                image.load()
                # exif_transpose returns a new image, or a copy when no rotation applies
                return ImageOps.exif_transpose(image) or image.copy()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise UnsupportedImageError(
                f"File '{filename}' could not be decoded as an image: {e}",
                code="image_decode_failed",
                details={"filename": filename, "file_size": len(image_data), "heif_support": HEIF_AVAILABLE},
                original_exception=e,
            ) from e

    def calculate_size(self, original_size: tuple[int, int], max_dimension: int | None = None) -> tuple[int, int]:
        """
        Scale the longer edge down to `max_dimension`, preserving aspect ratio.

        Images already within the bound keep their size; nothing is upscaled.
        """
        max_dimension = max_dimension or self.max_dimension
        width, height = original_size
        longer = max(width, height)
        if longer <= max_dimension:
            return (width, height)

        scale = max_dimension / longer
        if width >= height:
            return (max_dimension, max(1, round(height * scale)))
        return (max(1, round(width * scale)), max_dimension)

    def derive_image(self, image: Image.Image, max_dimension: int | None = None) -> Image.Image:
        """
        Build a resized copy of `image`; the source is left untouched.
        """
        thumbnail_size = self.calculate_size(image.size, max_dimension)
        working = image if image.mode in ("RGB", "L") else image.convert("RGB")
        return working.resize(thumbnail_size, Image.Resampling.LANCZOS)

    def derive(self, image_data: bytes, filename: str = "", max_dimension: int | None = None) -> str:
        """
        Derive a gallery preview from full-resolution image bytes.

        Args:
            image_data: Raw image bytes
            filename: Original file name, for error reporting
            max_dimension: Override the longest thumbnail edge

        Returns:
            str: JPEG thumbnail as a data URL ('data:image/jpeg;base64,...')

        Raises:
            UnsupportedImageError: If the source cannot be decoded
        """
        start_time = time.perf_counter()
        image = self.decode(image_data, filename)
        original_size = image.size

        thumbnail = self.derive_image(image, max_dimension)

        buffer = io.BytesIO()
        thumbnail.save(buffer, format="JPEG", quality=self.quality, optimize=True)
        thumbnail_data = buffer.getvalue()

        log_performance(
            "generate_thumbnail",
            time.perf_counter() - start_time,
            original_size=original_size,
            thumbnail_size=thumbnail.size,
            original_file_size=len(image_data),
            thumbnail_file_size=len(thumbnail_data),
            quality=self.quality,
        )
        logger.debug("thumbnail_generated", filename=filename, thumbnail_size=thumbnail.size)

        return to_data_url(thumbnail_data, "image/jpeg")


def to_data_url(data: bytes, mime_type: str) -> str:
    """Encode bytes as an inline data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_url(data_url: str) -> tuple[str, bytes]:
    """
    Split a base64 data URL into its media type and bytes.

    Raises:
        ValueError: If the string is not a base64 data URL
    """
    if not data_url.startswith("data:") or ";base64," not in data_url:
        raise ValueError("Not a base64 data URL")
    header, payload = data_url[len("data:") :].split(";base64,", 1)
    return header, base64.b64decode(payload)
