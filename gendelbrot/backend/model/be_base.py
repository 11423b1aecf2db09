from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from gendelbrot.fractals.base import RenderParameters, RenderSettings
from gendelbrot.rendering.progress import ProgressTracker


class Backend(ABC):
    """
    A base class for stability-mask rendering backends.
    """
    name: str
    settings: Optional[RenderSettings] = None

    @abstractmethod
    def compile(self, settings: RenderSettings) -> None:
        ...

    @abstractmethod
    def progress_total(self, params: RenderParameters) -> int:
        """Denominator of this backend's progress signals."""
        ...

    @abstractmethod
    def render(self,
               params: RenderParameters,
               tracker: Optional[ProgressTracker] = None
               ) -> np.ndarray:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        try:
            self.close()
        except Exception:
            pass
