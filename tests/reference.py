import numpy as np

from gendelbrot.fractals.mandelbrot import escape_test_cpu


def reference_mask(params, precision=np.float32):
    """Pixel-by-pixel mask using the same coordinate mapping as the kernels."""
    real_start, i_start, real_step, i_step = params.scalars(precision)
    cols = np.arange(params.image_width).astype(precision)
    rows = np.arange(params.image_height).astype(precision)
    cr = real_start + cols * real_step
    ci = i_start - rows * i_step
    out = np.empty((params.image_height, params.image_width), dtype=np.uint8)
    for r in range(params.image_height):
        for c in range(params.image_width):
            out[r, c] = 0 if escape_test_cpu(cr[c], ci[r], params.iteration_cap) else 255
    return out.ravel()
