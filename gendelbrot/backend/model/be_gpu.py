from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import numpy as np

from gendelbrot.errors import DeviceError, RenderError
from gendelbrot.fractals.base import Batch, BatchPlan, RenderParameters, RenderSettings
from gendelbrot.backend.model.be_base import Backend
from gendelbrot.rendering.assembler import assemble_device_buffer
from gendelbrot.rendering.partition import plan_batches
from gendelbrot.rendering.progress import ProgressTracker


logger = logging.getLogger(__name__)


class DeviceQueue(ABC):
    """
    The device capabilities the batch dispatcher needs: one image buffer
    on the device, a kernel launch over a pixel range, a barrier, and a
    copy back to the host.
    """
    name: str

    @abstractmethod
    def allocate(self, size: int) -> None:
        """Allocate the uint8 image buffer; contents are undefined."""
        ...

    @abstractmethod
    def upload_parameters(self, params: RenderParameters, precision: Any) -> None:
        ...

    @abstractmethod
    def launch(self, batch: Batch, plan: BatchPlan) -> None:
        ...

    @abstractmethod
    def synchronize(self) -> None:
        ...

    @abstractmethod
    def retrieve(self) -> np.ndarray:
        ...

    @abstractmethod
    def release(self) -> None:
        ...


class GpuBatchDispatcher:
    """
    Renders a whole image as a sequence of kernel launches over the
    flattened pixel index space.

    Every launch writes its pixels straight to their global row-major
    position, so the retrieved buffer is already the final image. The
    dispatcher synchronizes after each batch before reporting progress,
    trading some overlap for a steady progress cadence.
    """

    def __init__(self, device_queue: DeviceQueue, settings: RenderSettings) -> None:
        self.queue = device_queue
        self.settings = settings

    def plan(self, params: RenderParameters) -> BatchPlan:
        return plan_batches(params.total_pixels,
                            threads_per_block=self.settings.threads_per_block,
                            target_rounds=self.settings.target_rounds,
                            min_blocks_per_batch=self.settings.min_blocks_per_batch)

    def run(self, params: RenderParameters, tracker: Optional[ProgressTracker] = None) -> np.ndarray:
        plan = self.plan(params)
        name = self.queue.name
        t0 = time.perf_counter()
        try:
            self.queue.allocate(params.total_pixels)
            self.queue.upload_parameters(params, self.settings.precision)
            logger.debug("[%s] initialized in %.3f s", name, time.perf_counter() - t0)

            t1 = time.perf_counter()
            for batch in plan.batches:
                self.queue.launch(batch, plan)
                self.queue.synchronize()
                if tracker is not None:
                    tracker.add(batch.count)
            logger.debug("[%s] %d batches finished in %.3f s", name,
                         len(plan.batches), time.perf_counter() - t1)

            host = self.queue.retrieve()
        except RenderError:
            raise
        except Exception as e:
            raise DeviceError(f"[{name}] render aborted: {e}") from e
        finally:
            self.queue.release()

        return assemble_device_buffer(host, params)


class GpuBackend(Backend):
    """
    Shared lifecycle for device backends: kernel lookup, warm-up and a
    fresh DeviceQueue per render.
    """
    name = "GPU"

    def __init__(self) -> None:
        self.settings: Optional[RenderSettings] = None
        self.kernel_meta: Optional[Dict[str, Any]] = None
        self._warmed_up = False

        # Warm up params
        self._wu_params = RenderParameters(image_width=8, image_height=8,
                                           real_start=-2.0, i_start=1.5,
                                           real_step=3.0 / 8, i_step=3.0 / 8,
                                           iteration_cap=16, worker_count=1)

    @abstractmethod
    def _build(self, settings: RenderSettings) -> Dict[str, Any]:
        """Load (and build, if needed) the kernel for the settings."""
        ...

    @abstractmethod
    def make_queue(self) -> DeviceQueue:
        ...

    def compile(self, settings: RenderSettings) -> None:
        self.kernel_meta = self._build(settings)
        self.settings = settings
        self._warmed_up = False
        try:
            self._warmup()
        except Exception:
            # Uncompiled until a compile() succeeds
            self.kernel_meta = None
            self.settings = None
            raise

    def _warmup(self) -> None:
        """
        Render a tiny image so the kernel is compiled before any timed render.
        """
        if self._warmed_up or self.kernel_meta is None:
            return
        self.render(self._wu_params)
        self._warmed_up = True

    def progress_total(self, params: RenderParameters) -> int:
        return params.total_pixels

    def render(self,
               params: RenderParameters,
               tracker: Optional[ProgressTracker] = None
               ) -> np.ndarray:
        if self.kernel_meta is None or self.settings is None:
            raise RenderError("Backend has not been compiled yet")
        dispatcher = GpuBatchDispatcher(self.make_queue(), self.settings)
        return dispatcher.run(params, tracker)
