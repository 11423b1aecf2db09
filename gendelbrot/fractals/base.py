from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np

from gendelbrot.errors import PartitionError


# Pixel convention shared by every backend
STABLE = 0
ESCAPED = 255

# Kernels take the cap as a 32-bit signed int
MAX_ITERATION_CAP = 2 ** 31 - 1


@dataclass(frozen=True)
class RenderParameters:
    """
    Holds the parameters of a single render.
    Image_width and image_height are the size of the output in pixels.
    Real_start and i_start locate the top-left pixel in the complex plane;
    real_step and i_step are the plane distance between neighbouring pixels.
    Rows go downwards, so the imaginary coordinate decreases with the row.
    Iteration_cap bounds the escape test; worker_count is the number of
    CPU bands requested.
    """
    image_width: int
    image_height: int
    real_start: float
    i_start: float
    real_step: float
    i_step: float
    iteration_cap: int
    worker_count: int = 1

    def __post_init__(self) -> None:
        for name in ("image_width", "image_height", "worker_count"):
            value = getattr(self, name)
            if int(value) != value or value <= 0:
                raise PartitionError(f"{name} must be a positive integer, got {value!r}")
        if int(self.iteration_cap) != self.iteration_cap or self.iteration_cap < 0:
            raise PartitionError(f"iteration_cap must be a non-negative integer, got {self.iteration_cap!r}")
        if self.iteration_cap > MAX_ITERATION_CAP:
            raise PartitionError(f"iteration_cap must not exceed {MAX_ITERATION_CAP}, got {self.iteration_cap}")

    @property
    def total_pixels(self) -> int:
        return self.image_width * self.image_height

    def real_coordinate(self, col: int) -> float:
        return self.real_start + col * self.real_step

    def imaginary_coordinate(self, row: int) -> float:
        return self.i_start - row * self.i_step

    def scalars(self, precision: Any) -> Tuple[Any, Any, Any, Any]:
        """Plane origin and steps cast to the render precision."""
        cast = np.dtype(precision).type
        return (cast(self.real_start), cast(self.i_start),
                cast(self.real_step), cast(self.i_step))

    @classmethod
    def from_view(
            cls,
            center: Tuple[float, float],
            size: Tuple[float, float],
            image_size: Tuple[int, int],
            iteration_cap: int,
            worker_count: int = 1,
    ) -> "RenderParameters":
        """
        Build parameters from a plane-space view: center (x, y), plane
        size (width, height) and image size in pixels (width, height).
        """
        width, height = int(image_size[0]), int(image_size[1])
        if width <= 0 or height <= 0:
            raise PartitionError(f"image size must be positive, got {width}x{height}")
        return cls(
            image_width=width,
            image_height=height,
            real_start=center[0] - size[0] / 2.0,
            i_start=center[1] + size[1] / 2.0,
            real_step=size[0] / width,
            i_step=size[1] / height,
            iteration_cap=int(iteration_cap),
            worker_count=int(worker_count),
        )


@dataclass(frozen=True)
class Band:
    """
    A contiguous slice of image rows owned by one CPU worker.
    """
    index: int
    row_offset: int
    row_count: int

    @property
    def row_stop(self) -> int:
        return self.row_offset + self.row_count

    @property
    def rows(self) -> range:
        return range(self.row_offset, self.row_stop)


@dataclass(frozen=True)
class Batch:
    """
    A contiguous range of flattened pixel indices covered by one kernel launch.
    """
    index: int
    offset: int
    count: int

    @property
    def stop(self) -> int:
        return self.offset + self.count


@dataclass(frozen=True)
class BatchPlan:
    threads_per_block: int
    blocks_per_batch: int
    batches: List[Batch] = field(default_factory=list)

    @property
    def batch_size(self) -> int:
        return self.threads_per_block * self.blocks_per_batch


@dataclass(frozen=True)
class RenderSettings:
    """
    Execution settings that do not change the image.
    Precision is the floating-point type used by every kernel.
    Threads_per_block, target_rounds and min_blocks_per_batch size the GPU
    batches. Poll_interval is how often (seconds) the CPU coordinator drains
    progress while waiting for workers.
    """
    precision: Any = np.float32
    threads_per_block: int = 256
    target_rounds: int = 100
    min_blocks_per_batch: int = 100
    poll_interval: float = 0.05

    @property
    def precision_tag(self) -> str:
        return precision_tag(self.precision)


def precision_tag(precision: Any) -> str:
    dt = np.dtype(precision)
    if dt == np.float32:
        return "f32"
    if dt == np.float64:
        return "f64"
    raise ValueError(f"Unsupported precision: {dt}")


@dataclass(frozen=True)
class RenderConfig:
    """
    User-facing description of an image: where to look in the plane, how
    big the image is, and how to compute it. Defaults render the whole set.
    """
    center: Tuple[float, float] = (-0.5, 0.0)
    size: Tuple[float, float] = (3.0, 3.0)
    image_size: Tuple[int, int] = (1024, 1024)
    iterations: int = 50
    threads: int = 1
    output: str = "mandelbrot.png"
    backend: str = "CPU"
    precision: Any = np.float32
    device: Optional[int] = None

    def to_parameters(self) -> RenderParameters:
        return RenderParameters.from_view(self.center, self.size, self.image_size,
                                          self.iterations, self.threads)

    def to_settings(self, **overrides: Any) -> RenderSettings:
        return RenderSettings(precision=self.precision, **overrides)
