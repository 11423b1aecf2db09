from .base import (RenderParameters, RenderSettings, RenderConfig, Band, Batch,
                   BatchPlan, STABLE, ESCAPED, precision_tag)
from .mandelbrot import ComplexPoint, escape_test, is_stable

__all__ = [
    "RenderParameters",
    "RenderSettings",
    "RenderConfig",
    "Band",
    "Batch",
    "BatchPlan",
    "STABLE",
    "ESCAPED",
    "precision_tag",
    "ComplexPoint",
    "escape_test",
    "is_stable",
]
