from enum import Enum, auto

import numpy as np


class BackendType(Enum):
    AUTO = auto()
    GPU = auto()
    CPU = auto()
    CUDA = auto()
    OPENCL = auto()


class PrecisionMode(Enum):
    Single = auto()
    Double = auto()

    @property
    def dtype(self):
        return np.float64 if self is PrecisionMode.Double else np.float32

    @classmethod
    def from_tag(cls, tag: str) -> "PrecisionMode":
        tag = tag.lower()
        if tag in ("f32", "float32", "single"):
            return cls.Single
        if tag in ("f64", "float64", "double"):
            return cls.Double
        raise ValueError(f"Unsupported precision: {tag}")
