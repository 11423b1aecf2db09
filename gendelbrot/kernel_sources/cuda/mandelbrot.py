from numba import cuda, float32, float64

from gendelbrot.fractals.base import STABLE, ESCAPED
from gendelbrot.fractals.mandelbrot import escape_test
from gendelbrot.kernel_sources.registry import register_kernel


ARG_ORDER = [
    "image", "batch_offset", "image_width", "image_height",
    "real_start", "i_start", "real_step", "i_step",
    "iteration_cap",
]

escape_test_device = cuda.jit(device=True)(escape_test)


def _make_mask_kernel(cast):
    @cuda.jit
    def mandelbrot_mask(image, batch_offset, image_width, image_height,
                        real_start, i_start, real_step, i_step,
                        iteration_cap):
        # Thread -> flattened pixel index -> (row, col)
        pos = batch_offset + cuda.grid(1)
        if pos >= image_width * image_height:
            return
        row = pos // image_width
        col = pos - row * image_width

        ci = i_start - cast(row) * i_step
        cr = real_start + cast(col) * real_step
        if escape_test_device(cr, ci, iteration_cap):
            image[pos] = STABLE
        else:
            image[pos] = ESCAPED

    return mandelbrot_mask


register_kernel(
    backend="CUDA",
    precision="f32",
    func=_make_mask_kernel(float32),
    arg_order=ARG_ORDER,
)

register_kernel(
    backend="CUDA",
    precision="f64",
    func=_make_mask_kernel(float64),
    arg_order=ARG_ORDER,
)
