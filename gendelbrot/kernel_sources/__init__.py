# Kernel sources package
from .registry import (register_kernel, load_kernel, list_kernels,
                       iter_registry)

__all__ = [
    "register_kernel",
    "load_kernel",
    "list_kernels",
    "iter_registry",
]
