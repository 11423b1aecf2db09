import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pyopencl as cl

import gendelbrot.kernel_sources.opencl.mandelbrot  # noqa: F401  (registers kernels)
from gendelbrot.errors import BackendUnavailableError
from gendelbrot.fractals.base import Batch, BatchPlan, RenderParameters, RenderSettings
from gendelbrot.kernel_sources.registry import load_kernel
from gendelbrot.backend.model.be_gpu import DeviceQueue, GpuBackend


logger = logging.getLogger(__name__)


def list_opencl_devices() -> List[Tuple[int, "cl.Platform", "cl.Device"]]:
    """All OpenCL devices with a global ordinal across platforms."""
    out = []
    ordinal = 0
    for p in cl.get_platforms():
        for d in p.get_devices():
            out.append((ordinal, p, d))
            ordinal += 1
    return out


class OpenClDeviceQueue(DeviceQueue):
    """
    DeviceQueue over a PyOpenCL in-order command queue.
    """
    name = "OPENCL"

    def __init__(self, ctx: "cl.Context", queue: "cl.CommandQueue", kernel: "cl.Kernel",
                 max_local_size: int) -> None:
        self.ctx = ctx
        self.queue = queue
        self.kernel = kernel
        self.max_local_size = max_local_size
        self._image: Optional[cl.Buffer] = None
        self._size = 0
        self._args: Optional[Tuple[Any, ...]] = None

    def allocate(self, size: int) -> None:
        self._size = size
        self._image = cl.Buffer(self.ctx, cl.mem_flags.WRITE_ONLY, size=size)

    def upload_parameters(self, params: RenderParameters, precision: Any) -> None:
        real_start, i_start, real_step, i_step = params.scalars(precision)
        self._args = (np.uint64(params.image_width), np.uint64(params.image_height),
                      real_start, i_start, real_step, i_step,
                      np.int32(params.iteration_cap))

    def launch(self, batch: Batch, plan: BatchPlan) -> None:
        local = min(plan.threads_per_block, self.max_local_size)
        global_size = (batch.count + local - 1) // local * local
        self.kernel(self.queue, (global_size,), (local,),
                    self._image, np.uint64(batch.offset), *self._args)

    def synchronize(self) -> None:
        self.queue.finish()

    def retrieve(self) -> np.ndarray:
        host = np.empty(self._size, dtype=np.uint8)
        cl.enqueue_copy(self.queue, host, self._image)
        self.queue.finish()
        return host

    def release(self) -> None:
        if self._image is not None:
            self._image.release()
        self._image = None
        self._args = None


class OpenClBackend(GpuBackend):
    """
    Backend for OpenCL rendering through PyOpenCL.
    """
    name = "OPENCL"

    def __init__(self, device: Optional[int] = None):
        try:
            all_devs = list_opencl_devices()
        except Exception as e:
            raise BackendUnavailableError(f"OpenCL platform query failed: {e}") from e
        if not all_devs:
            raise BackendUnavailableError("No OpenCL devices found.")

        if device is None:
            chosen = next(((o, d) for o, _, d in all_devs if d.type & cl.device_type.GPU), None)
            if chosen is None:
                chosen = (all_devs[0][0], all_devs[0][2])
        else:
            chosen = next(((o, d) for o, _, d in all_devs if o == device), None)
            if chosen is None:
                raise BackendUnavailableError(f"No OpenCL device with ordinal {device} found.")

        self.device_ordinal, self.device = chosen
        try:
            self.ctx: Optional[cl.Context] = cl.Context([self.device])
            self.queue: Optional[cl.CommandQueue] = cl.CommandQueue(self.ctx, self.device)
        except Exception as e:
            raise BackendUnavailableError(
                f"Cannot open OpenCL device {self.device_ordinal}: {e}") from e
        self._kernel: Optional[cl.Kernel] = None
        super().__init__()

    def _build(self, settings: RenderSettings) -> Dict[str, Any]:
        if self.ctx is None:
            raise BackendUnavailableError("OpenCL backend is closed")
        meta = load_kernel(self.name, settings.precision_tag)
        if settings.precision_tag == "f64" and not self.device.double_fp_config:
            raise BackendUnavailableError(
                f"OpenCL device '{self.device.name}' has no double precision support")
        program = cl.Program(self.ctx, meta["src"]).build(options=meta.get("build_options", []))
        self._kernel = cl.Kernel(program, meta["kernel_name"])
        return meta

    def make_queue(self) -> OpenClDeviceQueue:
        if self.queue is None or self._kernel is None:
            raise BackendUnavailableError("OpenCL backend is closed or not compiled")
        return OpenClDeviceQueue(self.ctx, self.queue, self._kernel,
                                 int(self.device.max_work_group_size))

    def close(self) -> None:
        if getattr(self, "queue", None) is not None:
            try:
                self.queue.finish()
            except Exception as e:
                logger.warning("Error in closing queue: %s", e)
        self.queue = None
        self.ctx = None
        self._kernel = None
        self.kernel_meta = None
        self.settings = None
