from __future__ import annotations
from typing import Dict, Any, List

# Nested dict: [backend][precision] -> meta
_REGISTRY: Dict[str, Dict[str, Dict[str, Any]]] = {}

_REQUIRED_META = {
    "CPU": ("func", "arg_order"),
    "CUDA": ("func", "arg_order"),
    "OPENCL": ("src", "kernel_name", "arg_order"),
}


def register_kernel(backend: str, precision: str, **meta: Any) -> None:
    """
    Register kernel metadata for a given backend and precision.
    Example:
        register_kernel("CUDA", "f32", func=my_cuda_func, arg_order=[...])
    """
    be = backend.upper()
    _validate_meta(be, meta, f"register_kernel({be}/{precision})")
    _REGISTRY.setdefault(be, {})[precision] = meta


def load_kernel(backend: str, precision: str) -> Dict[str, Any]:
    """
    Load kernel metadata from the registry for the given parameters.
    Raises KeyError if not found.
    """
    be = backend.upper()
    try:
        return _REGISTRY[be][precision]
    except KeyError as e:
        raise KeyError(f"Kernel not found for backend='{be}', precision='{precision}'") from e


def list_kernels(backend: str) -> List[str]:
    """
    List the precisions registered for a backend.
    """
    return sorted(_REGISTRY.get(backend.upper(), {}))


def iter_registry():
    return _REGISTRY


def _validate_meta(backend: str, meta: Dict[str, Any], where: str) -> None:
    for key in _REQUIRED_META.get(backend, ("arg_order",)):
        if key not in meta:
            raise KeyError(f"{where} must provide '{key}' for {backend}")
    if not isinstance(meta["arg_order"], (list, tuple)):
        raise KeyError(f"{where} 'arg_order' must be a list")
