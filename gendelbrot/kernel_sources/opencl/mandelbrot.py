from gendelbrot.kernel_sources.registry import register_kernel

SRC = r"""
#pragma OPENCL FP_CONTRACT OFF

#ifdef USE_DOUBLE
  #pragma OPENCL EXTENSION cl_khr_fp64 : enable
  typedef double real_t;
#else
  typedef float  real_t;
#endif

inline int escape_test(real_t cr, real_t ci, int iteration_cap)
{
    real_t zr = cr, zi = ci;
    for (int n = 0; n < iteration_cap; ++n) {
        if (zr*zr + zi*zi >= (real_t)4.0) return 0;
        real_t zr2 = zr*zr - zi*zi + cr;
        zi = (zr + zr) * zi + ci;
        zr = zr2;
    }
    return 1;
}

__kernel void mandelbrot_mask(
    __global uchar* image,
    const ulong batch_offset,
    const ulong image_width, const ulong image_height,
    const real_t real_start, const real_t i_start,
    const real_t real_step, const real_t i_step,
    const int iteration_cap)
{
    const ulong pos = batch_offset + get_global_id(0);
    if (pos >= image_width * image_height) return;
    const ulong row = pos / image_width;
    const ulong col = pos - row * image_width;

    const real_t ci = i_start - (real_t)row * i_step;
    const real_t cr = real_start + (real_t)col * real_step;
    image[pos] = escape_test(cr, ci, iteration_cap) ? 0 : 255;
}
"""

KERNEL_NAME = "mandelbrot_mask"

ARG_ORDER = [
    "image", "batch_offset", "image_width", "image_height",
    "real_start", "i_start", "real_step", "i_step",
    "iteration_cap",
]

# No relaxed math or contraction: the CPU path computes the same expressions unfused
opts_f32 = []
opts_f64 = ["-D", "USE_DOUBLE=1"]

register_kernel(
    backend="OPENCL",
    precision="f32",
    src=SRC,
    kernel_name=KERNEL_NAME,
    build_options=opts_f32,
    arg_order=ARG_ORDER,
)

register_kernel(
    backend="OPENCL",
    precision="f64",
    src=SRC,
    kernel_name=KERNEL_NAME,
    build_options=opts_f64,
    arg_order=ARG_ORDER,
)
