from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from gendelbrot.errors import RenderError
from gendelbrot.fractals.base import RenderParameters


def assemble_bands(parts: Iterable[Tuple[int, np.ndarray]], params: RenderParameters) -> np.ndarray:
    """
    Join per-band buffers into the row-major image.

    Bands are ordered by band index, never by the order they finished in;
    the joined length must cover the image exactly.
    """
    ordered = sorted(parts, key=lambda part: part[0])
    indices = [idx for idx, _ in ordered]
    if len(set(indices)) != len(indices):
        raise RenderError(f"Duplicate band indices in {indices}")
    if not ordered:
        raise RenderError("No bands to assemble")

    image = np.concatenate([np.asarray(buf, dtype=np.uint8).ravel() for _, buf in ordered])
    if image.size != params.total_pixels:
        raise RenderError(
            f"Assembled {image.size} pixels, expected {params.total_pixels} "
            f"({params.image_width}x{params.image_height})")
    return image


def assemble_device_buffer(buffer: np.ndarray, params: RenderParameters) -> np.ndarray:
    """
    The device already wrote global row-major positions; only check it.
    """
    image = np.asarray(buffer)
    if image.dtype != np.uint8:
        raise RenderError(f"Device buffer has dtype {image.dtype}, expected uint8")
    image = image.ravel()
    if image.size != params.total_pixels:
        raise RenderError(
            f"Device buffer holds {image.size} pixels, expected {params.total_pixels}")
    return image


def as_image(buffer: np.ndarray, params: RenderParameters) -> np.ndarray:
    """(height, width) view of a flat pixel buffer."""
    return np.asarray(buffer).reshape(params.image_height, params.image_width)
