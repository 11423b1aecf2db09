from numba import njit, float32, float64

from gendelbrot.fractals.base import STABLE
from gendelbrot.fractals.mandelbrot import escape_test_cpu
from gendelbrot.kernel_sources.registry import register_kernel


ARG_ORDER = [
    "out", "row", "image_width",
    "real_start", "i_start", "real_step", "i_step",
    "iteration_cap",
]


def _make_row_kernel(cast):
    # cast is a numba scalar type; it pins the coordinate math to one precision
    @njit(nogil=True)
    def render_row(out, row, image_width,
                   real_start, i_start, real_step, i_step,
                   iteration_cap):
        ci = i_start - cast(row) * i_step
        for col in range(image_width):
            cr = real_start + cast(col) * real_step
            if escape_test_cpu(cr, ci, iteration_cap):
                out[col] = STABLE

    return render_row


register_kernel(
    backend="CPU",
    precision="f32",
    func=_make_row_kernel(float32),
    arg_order=ARG_ORDER,
)

register_kernel(
    backend="CPU",
    precision="f64",
    func=_make_row_kernel(float64),
    arg_order=ARG_ORDER,
)
