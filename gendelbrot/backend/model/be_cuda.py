import logging
from typing import Any, Dict, Optional, Tuple

import numpy as np
from numba import cuda

import gendelbrot.kernel_sources.cuda.mandelbrot  # noqa: F401  (registers kernels)
from gendelbrot.errors import BackendUnavailableError
from gendelbrot.fractals.base import Batch, BatchPlan, RenderParameters, RenderSettings
from gendelbrot.kernel_sources.registry import load_kernel
from gendelbrot.backend.model.be_gpu import DeviceQueue, GpuBackend


logger = logging.getLogger(__name__)


class CudaDeviceQueue(DeviceQueue):
    """
    DeviceQueue over a Numba CUDA stream.
    """
    name = "CUDA"

    def __init__(self, kernel: Any, stream: Any) -> None:
        self.kernel = kernel
        self.stream = stream
        self._image = None
        self._args: Optional[Tuple[Any, ...]] = None

    def allocate(self, size: int) -> None:
        self._image = cuda.device_array(size, dtype=np.uint8)

    def upload_parameters(self, params: RenderParameters, precision: Any) -> None:
        real_start, i_start, real_step, i_step = params.scalars(precision)
        self._args = (np.int64(params.image_width), np.int64(params.image_height),
                      real_start, i_start, real_step, i_step,
                      np.int64(params.iteration_cap))

    def launch(self, batch: Batch, plan: BatchPlan) -> None:
        threads = plan.threads_per_block
        blocks = (batch.count + threads - 1) // threads
        self.kernel[blocks, threads, self.stream](self._image, np.int64(batch.offset), *self._args)

    def synchronize(self) -> None:
        self.stream.synchronize()

    def retrieve(self) -> np.ndarray:
        host = self._image.copy_to_host(stream=self.stream)
        self.stream.synchronize()
        return host

    def release(self) -> None:
        # Numba frees device memory when the last reference goes
        self._image = None
        self._args = None


class CudaBackend(GpuBackend):
    """
    Backend for CUDA rendering through Numba.
    """
    name = "CUDA"

    def __init__(self, device: Optional[int] = None):
        if not cuda.is_available():
            raise BackendUnavailableError("CUDA not available")
        try:
            if device is not None:
                cuda.select_device(device)
            self.stream = cuda.stream()
        except Exception as e:
            raise BackendUnavailableError(f"Cannot open CUDA device {device}: {e}") from e
        self.device = device
        super().__init__()

    def _build(self, settings: RenderSettings) -> Dict[str, Any]:
        return load_kernel(self.name, settings.precision_tag)

    def make_queue(self) -> CudaDeviceQueue:
        if self.stream is None:
            raise BackendUnavailableError("CUDA backend is closed")
        return CudaDeviceQueue(self.kernel_meta["func"], self.stream)

    def close(self) -> None:
        if getattr(self, "stream", None) is not None:
            try:
                self.stream.synchronize()
            except Exception as e:
                logger.warning("Error in closing stream: %s", e)
        self.stream = None
        self.kernel_meta = None
        self.settings = None
