from __future__ import annotations

import logging
import queue
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

import gendelbrot.kernel_sources.cpu.mandelbrot  # noqa: F401  (registers kernels)
from gendelbrot.errors import RenderError
from gendelbrot.fractals.base import ESCAPED, Band, RenderParameters, RenderSettings
from gendelbrot.kernel_sources.registry import load_kernel
from gendelbrot.backend.model.be_base import Backend
from gendelbrot.rendering.assembler import assemble_bands
from gendelbrot.rendering.partition import partition_rows
from gendelbrot.rendering.progress import ProgressTracker


logger = logging.getLogger(__name__)


class CpuBackend(Backend):
    """
    Backend for CPU rendering: one worker thread per row band.

    Each worker fills a private buffer with the compiled row kernel (which
    releases the GIL) and reports one progress increment per row. The
    coordinating thread joins every worker exactly once, draining progress
    while it waits, and the bands are reassembled by band index.
    """
    name = "CPU"

    def __init__(self):
        self.settings: Optional[RenderSettings] = None
        self._row_kernel: Optional[Callable[..., None]] = None
        self._warmed_up = False

        # Warmup configuration
        self._wu_params = RenderParameters(image_width=8, image_height=8,
                                           real_start=-2.0, i_start=1.5,
                                           real_step=3.0 / 8, i_step=3.0 / 8,
                                           iteration_cap=16, worker_count=1)

    def compile(self, settings: RenderSettings) -> None:
        """
        Load the row kernel for the settings' precision and JIT it.
        """
        meta = load_kernel(self.name, settings.precision_tag)
        self._row_kernel = meta["func"]
        self.settings = settings
        self._warmed_up = False
        try:
            self._warmup()
        except Exception:
            self._row_kernel = None
            self.settings = None
            raise

    def _warmup(self) -> None:
        if self._warmed_up or self._row_kernel is None:
            return
        band = Band(index=0, row_offset=0, row_count=self._wu_params.image_height)
        self._render_band(self._wu_params, band, queue.SimpleQueue())
        self._warmed_up = True

    def progress_total(self, params: RenderParameters) -> int:
        return params.image_height

    def render(self,
               params: RenderParameters,
               tracker: Optional[ProgressTracker] = None
               ) -> np.ndarray:
        bands = partition_rows(params.image_height, params.worker_count)
        parts = self.run(params, bands, tracker)
        return assemble_bands(parts, params)

    def run(self,
            params: RenderParameters,
            bands: List[Band],
            tracker: Optional[ProgressTracker] = None
            ) -> List[Tuple[int, np.ndarray]]:
        """
        Render every band on its own thread and return (band_index, buffer)
        pairs in band order.
        """
        if self._row_kernel is None or self.settings is None:
            raise RenderError("Backend has not been compiled yet")
        if not bands:
            raise RenderError("No bands to render")

        progress: "queue.SimpleQueue[int]" = queue.SimpleQueue()
        results: Dict[int, np.ndarray] = {}
        poll = self.settings.poll_interval

        logger.debug("CPU render: %d bands for %dx%d", len(bands),
                     params.image_width, params.image_height)

        # All workers start eagerly, regardless of core count
        with ThreadPoolExecutor(max_workers=len(bands),
                                thread_name_prefix="gendelbrot-band") as ex:
            futs = {ex.submit(self._render_band, params, band, progress): band
                    for band in bands}
            pending = set(futs)
            while pending:
                done, pending = wait(pending, timeout=poll, return_when=FIRST_COMPLETED)
                self._drain(progress, tracker)
                for fut in done:
                    band = futs[fut]
                    try:
                        results[band.index] = fut.result()
                    except Exception as e:
                        raise RenderError(
                            f"CPU worker for band {band.index} "
                            f"(rows {band.row_offset}..{band.row_stop - 1}) failed: {e}"
                        ) from e

        # Rows reported between the last wait and the join
        self._drain(progress, tracker)
        return [(band.index, results[band.index]) for band in bands]

    def _render_band(self,
                     params: RenderParameters,
                     band: Band,
                     progress: "queue.SimpleQueue[int]"
                     ) -> np.ndarray:
        width = params.image_width
        real_start, i_start, real_step, i_step = params.scalars(self.settings.precision)
        buf = np.full(band.row_count * width, ESCAPED, dtype=np.uint8)
        for local, row in enumerate(band.rows):
            self._row_kernel(buf[local * width:(local + 1) * width], row, width,
                             real_start, i_start, real_step, i_step,
                             params.iteration_cap)
            progress.put(1)
        return buf

    @staticmethod
    def _drain(progress: "queue.SimpleQueue[Any]", tracker: Optional[ProgressTracker]) -> None:
        rows = 0
        while True:
            try:
                rows += progress.get_nowait()
            except queue.Empty:
                break
        if rows and tracker is not None:
            tracker.add(rows)

    def close(self) -> None:
        self._row_kernel = None
        self.settings = None
        self._warmed_up = False
