"""Raster preprocessing: luminance, threshold, denoise and border cleanup.

Every transform returns a new :class:`PixelBuffer`; inputs are never
modified.  Binary buffers hold a boolean array where ``True`` marks an ink
pixel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from rastersolid.errors import InvalidSource, MalformedTraceInput, NoImageLoaded

logger = logging.getLogger(__name__)

_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """A width x height grid of samples.

    ``data`` is ``H x W`` (grayscale or boolean), ``H x W x 3`` (RGB) or
    ``H x W x 4`` (RGBA).  The array is copied on construction so the buffer
    owns its samples.
    """

    data: np.ndarray

    def __post_init__(self) -> None:
        arr = np.array(self.data, copy=True)
        if arr.ndim == 3 and arr.shape[2] not in (3, 4):
            raise InvalidSource(f"unsupported channel count {arr.shape[2]}")
        if arr.ndim not in (2, 3):
            raise InvalidSource(f"pixel data must be 2D or 3D, got {arr.ndim}D")
        arr.setflags(write=False)
        object.__setattr__(self, "data", arr)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def is_binary(self) -> bool:
        return self.data.dtype == np.bool_

    @property
    def ink_count(self) -> int:
        if not self.is_binary:
            raise ValueError("ink_count is only defined for binary buffers")
        return int(self.data.sum())

    def __repr__(self) -> str:
        kind = "binary" if self.is_binary else str(self.data.dtype)
        return f"PixelBuffer({self.width}x{self.height}, {kind})"


BufferLike = Union[PixelBuffer, np.ndarray]


def _as_buffer(buffer: Optional[BufferLike]) -> PixelBuffer:
    if buffer is None:
        raise NoImageLoaded()
    if isinstance(buffer, PixelBuffer):
        return buffer
    return PixelBuffer(np.asarray(buffer))


def luminance(buffer: Optional[BufferLike]) -> np.ndarray:
    """Return float luminance ``0.299R + 0.587G + 0.114B`` per pixel.

    Grayscale input is returned as floats unchanged; alpha is ignored.
    """

    buf = _as_buffer(buffer)
    data = buf.data
    if data.ndim == 2:
        if buf.is_binary:
            # ink is dark
            return np.where(data, 0.0, 255.0)
        return data.astype(np.float64)
    return data[:, :, :3].astype(np.float64) @ _LUMA


def to_grayscale(buffer: Optional[BufferLike]) -> PixelBuffer:
    """Return a ``uint8`` grayscale copy of ``buffer``."""

    lum = luminance(buffer)
    return PixelBuffer(np.clip(np.rint(lum), 0, 255).astype(np.uint8))


def box_blur(values: np.ndarray, radius: int) -> np.ndarray:
    """Mean filter over a ``(2r+1)^2`` window with edge replication."""

    values = np.asarray(values, dtype=np.float64)
    if radius <= 0:
        return values.copy()
    size = 2 * radius + 1
    padded = np.pad(values, radius, mode="edge")
    integral = np.zeros((padded.shape[0] + 1, padded.shape[1] + 1), dtype=np.float64)
    integral[1:, 1:] = padded.cumsum(axis=0).cumsum(axis=1)
    h, w = values.shape
    total = (integral[size:size + h, size:size + w]
             - integral[0:h, size:size + w]
             - integral[size:size + h, 0:w]
             + integral[0:h, 0:w])
    return total / float(size * size)


def apply_threshold(buffer: Optional[BufferLike], threshold: float,
                    *, blur_radius: int = 0) -> PixelBuffer:
    """Binarize: a pixel is ink when its luminance is below ``threshold``."""

    lum = luminance(buffer)
    if blur_radius:
        lum = box_blur(lum, blur_radius)
    return PixelBuffer(lum < threshold)


def _windows(data: np.ndarray):
    """Yield the nine shifted views covering each interior pixel's 3x3 window."""

    h, w = data.shape
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            yield data[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]


def median_filter(buffer: BufferLike) -> PixelBuffer:
    """3x3 median over every interior pixel.

    Pixels without a full neighborhood become background (or 255 for
    grayscale).  For binary buffers the median of nine samples is a
    majority vote.
    """

    buf = _as_buffer(buffer)
    data = buf.data
    if data.ndim != 2:
        data = to_grayscale(buf).data
    h, w = data.shape
    if buf.is_binary:
        out = np.zeros((h, w), dtype=bool)
        if h >= 3 and w >= 3:
            count = sum(view.astype(np.uint8) for view in _windows(data))
            out[1:h - 1, 1:w - 1] = count >= 5
        return PixelBuffer(out)

    out = np.full((h, w), 255, dtype=np.uint8)
    if h >= 3 and w >= 3:
        stack = np.stack(list(_windows(data)), axis=0)
        out[1:h - 1, 1:w - 1] = np.median(stack, axis=0).astype(np.uint8)
    return PixelBuffer(out)


def clear_border(buffer: BufferLike, margin: int = 2) -> PixelBuffer:
    """Force pixels within ``margin`` of the image edge to background."""

    buf = _as_buffer(buffer)
    if not buf.is_binary:
        raise ValueError("clear_border expects a binary buffer")
    out = np.array(buf.data, copy=True)
    if margin > 0:
        out[:margin, :] = False
        out[-margin:, :] = False
        out[:, :margin] = False
        out[:, -margin:] = False
    return PixelBuffer(out)


def smooth_mask(buffer: BufferLike) -> PixelBuffer:
    """Drop isolated ink pixels and fill pin holes.

    An ink pixel survives if any 8-neighbor is ink; a background pixel turns
    to ink when at least six samples of its 3x3 window are ink.  The outer
    one-pixel ring becomes background.
    """

    buf = _as_buffer(buffer)
    if not buf.is_binary:
        raise ValueError("smooth_mask expects a binary buffer")
    data = buf.data
    h, w = data.shape
    out = np.zeros((h, w), dtype=bool)
    if h >= 3 and w >= 3:
        count = sum(view.astype(np.uint8) for view in _windows(data))
        center = data[1:h - 1, 1:w - 1]
        out[1:h - 1, 1:w - 1] = np.where(center, count > 1, count >= 6)
    return PixelBuffer(out)


def preprocess(buffer: Optional[BufferLike], threshold: float = 128, *,
               blur_radius: int = 0, smooth: bool = False,
               border: int = 2) -> PixelBuffer:
    """Threshold, median-denoise and border-clear ``buffer``.

    Raises :class:`NoImageLoaded` when ``buffer`` is ``None``.
    """

    buf = _as_buffer(buffer)
    if buf.width == 0 or buf.height == 0:
        raise MalformedTraceInput(
            f"image has no pixels ({buf.width}x{buf.height})", stage="preprocess")
    mask = apply_threshold(buf, threshold, blur_radius=blur_radius)
    mask = median_filter(mask)
    mask = clear_border(mask, border)
    if smooth:
        mask = smooth_mask(mask)
    logger.debug("preprocessed %dx%d image: %d ink pixels at threshold %s",
                 buf.width, buf.height, mask.ink_count, threshold)
    return mask


__all__ = [
    "PixelBuffer",
    "luminance",
    "to_grayscale",
    "box_blur",
    "apply_threshold",
    "median_filter",
    "clear_border",
    "smooth_mask",
    "preprocess",
]
