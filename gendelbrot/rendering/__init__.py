from gendelbrot.rendering.events import FrameEvent, ProgressEvent
from gendelbrot.rendering.partition import partition_rows, plan_batches
from gendelbrot.rendering.progress import ProgressTracker

__all__ = ["FrameEvent", "ProgressEvent", "ProgressTracker", "partition_rows", "plan_batches"]
