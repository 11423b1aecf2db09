from gendelbrot.errors import (BackendUnavailableError, DeviceError, PartitionError,
                               RenderError)
from gendelbrot.fractals import (ESCAPED, STABLE, Band, Batch, BatchPlan, ComplexPoint,
                                 RenderConfig, RenderParameters, RenderSettings, is_stable)
from gendelbrot.rendering import (FrameEvent, ProgressEvent, ProgressTracker,
                                  partition_rows, plan_batches)
from gendelbrot.rendering.executor import RenderExecutor, render
from gendelbrot.utils.enums import BackendType, PrecisionMode
from gendelbrot.utils.image import save_buffer

__version__ = "0.1.0"

__all__ = [
    "BackendType",
    "BackendUnavailableError",
    "Band",
    "Batch",
    "BatchPlan",
    "ComplexPoint",
    "DeviceError",
    "ESCAPED",
    "FrameEvent",
    "PartitionError",
    "PrecisionMode",
    "ProgressEvent",
    "ProgressTracker",
    "RenderConfig",
    "RenderError",
    "RenderExecutor",
    "RenderParameters",
    "RenderSettings",
    "STABLE",
    "is_stable",
    "partition_rows",
    "plan_batches",
    "render",
    "save_buffer",
]
