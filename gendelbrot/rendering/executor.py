from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Union

import numpy as np

from gendelbrot.backend.pool import BackendPool
from gendelbrot.devices.manager import DeviceManager
from gendelbrot.fractals.base import RenderParameters, RenderSettings
from gendelbrot.rendering.events import FrameEvent, ProgressEvent
from gendelbrot.rendering.progress import ProgressTracker
from gendelbrot.utils.enums import BackendType


logger = logging.getLogger(__name__)

BackendHint = Union[None, str, BackendType]


class RenderExecutor:
    """
    Execution facade built on:
      - DeviceManager: discovery/selection/scoring.
      - BackendPool: backend instance lifecycle and compilation.
    """

    def __init__(
        self,
        *,
        devices: Optional[DeviceManager] = None,
        pool: Optional[BackendPool] = None,
    ) -> None:
        self._devices = devices
        self.pool = pool or BackendPool()

    @property
    def devices(self) -> DeviceManager:
        # Created on first use
        if self._devices is None:
            self._devices = DeviceManager()
        return self._devices

    # ---- Lifecycle ------------------------------------------------------

    def close(self) -> None:
        self.pool.close_all()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ---- Selection ------------------------------------------------------

    def choose_backend(self, backend: BackendHint = None, device: Optional[int] = None) -> Tuple[str, Optional[int]]:
        """
        Resolve a backend hint to a concrete (backend, device) pair.
        AUTO (or None) picks the best scored device, GPU the best GPU.
        """
        name = backend.name if isinstance(backend, BackendType) else (backend or "AUTO").upper()
        if name == "AUTO":
            di = self.devices.choose(device=device)
            return di.backend, di.device_id
        if name == "GPU":
            di = self.devices.choose(device=device, gpu_only=True)
            return di.backend, di.device_id
        self.pool.spec(name)
        return name, device

    # ---- Render ---------------------------------------------------------

    def render(
        self,
        params: RenderParameters,
        settings: Optional[RenderSettings] = None,
        backend: BackendHint = None,
        device: Optional[int] = None,
        on_progress: Optional[Callable[[ProgressEvent], None]] = None,
        on_frame: Optional[Callable[[FrameEvent], None]] = None,
    ) -> np.ndarray:
        """
        Render params to a flat row-major uint8 buffer (0 = stable, 255 = escaped).
        """
        settings = settings or RenderSettings()
        name, dev = self.choose_backend(backend, device)
        be = self.pool.get(name, dev, settings)

        tracker = ProgressTracker(be.progress_total(params), on_progress)
        logger.info("Rendering %dx%d (%d iterations) on %s",
                    params.image_width, params.image_height, params.iteration_cap, be.name)

        t0 = time.perf_counter()
        image = be.render(params, tracker)
        elapsed = time.perf_counter() - t0

        logger.info("Rendered %dx%d on %s in %.3f s",
                    params.image_width, params.image_height, be.name, elapsed)
        if on_frame is not None:
            on_frame(FrameEvent(image, params.image_width, params.image_height, be.name, elapsed))
        return image


def render(
    params: RenderParameters,
    settings: Optional[RenderSettings] = None,
    backend: BackendHint = None,
    device: Optional[int] = None,
    on_progress: Optional[Callable[[ProgressEvent], None]] = None,
) -> np.ndarray:
    """One-shot render with a throwaway executor. Backend None means AUTO."""
    with RenderExecutor() as executor:
        return executor.render(params, settings, backend=backend, device=device,
                               on_progress=on_progress)
