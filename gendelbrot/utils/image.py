import os
from typing import Optional

import numpy as np
from PIL import Image


def save_buffer(path: str, buffer: np.ndarray, width: Optional[int] = None,
                height: Optional[int] = None) -> str:
    """
    Write a pixel buffer as an 8-bit grayscale image.
    Buffer is either a (height, width) image or a flat row-major buffer
    with width and height given. The format follows the file extension.
    Returns the absolute path.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext not in Image.registered_extensions():
        raise ValueError(f"Unsupported image extension '{ext}' for {path}")

    data = np.ascontiguousarray(buffer, dtype=np.uint8)
    if data.ndim == 1:
        if width is None or height is None:
            raise ValueError("A flat buffer needs width and height")
        if data.size != width * height:
            raise ValueError(f"Buffer holds {data.size} pixels, expected {width}x{height}")
        data = data.reshape(height, width)
    elif data.ndim != 2 or (width is not None and height is not None and data.shape != (height, width)):
        raise ValueError(f"Expected a ({height}, {width}) image, got shape {data.shape}")

    img = Image.fromarray(data)
    img.save(path)
    return os.path.abspath(path)
