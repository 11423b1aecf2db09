from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class ProgressEvent:
    completed: int
    total: int
    percent: float


@dataclass(frozen=True)
class FrameEvent:
    data: np.ndarray    # flat uint8 pixel buffer
    width: int
    height: int
    backend: str
    elapsed: float      # seconds
