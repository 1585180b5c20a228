"""Image acquisition: decode a source into an RGBA :class:`PixelBuffer`."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from rastersolid.errors import InvalidSource
from rastersolid.raster import PixelBuffer

logger = logging.getLogger(__name__)


def load_image(source) -> PixelBuffer:
    """Decode ``source`` into an ``H x W x 4`` ``uint8`` buffer.

    ``source`` may be a path, an open binary stream, a ``PIL.Image.Image``,
    a numpy array or an existing :class:`PixelBuffer`.  Anything else raises
    :class:`InvalidSource`.
    """

    if isinstance(source, PixelBuffer):
        return source
    if isinstance(source, np.ndarray):
        if source.dtype == np.bool_:
            return PixelBuffer(source)
        source = Image.fromarray(np.asarray(source, dtype=np.uint8))
    if isinstance(source, Image.Image):
        return _from_pil(source)
    if isinstance(source, (str, Path)) or hasattr(source, "read"):
        try:
            with Image.open(source) as img:
                img.load()
                buffer = _from_pil(img)
        except FileNotFoundError as exc:
            raise InvalidSource(f"image file not found: {source}") from exc
        except (UnidentifiedImageError, OSError) as exc:
            raise InvalidSource(f"cannot decode image {source}: {exc}") from exc
        logger.debug("loaded %s as %r", source, buffer)
        return buffer
    raise InvalidSource(f"unsupported image source type {type(source).__name__}")


def _from_pil(img: Image.Image) -> PixelBuffer:
    return PixelBuffer(np.asarray(img.convert("RGBA"), dtype=np.uint8))


__all__ = ["load_image"]
