from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Optional

from gendelbrot.backend.model.be_base import Backend
from gendelbrot.fractals.base import RenderSettings


logger = logging.getLogger(__name__)


def _cpu_backend(device: Optional[int] = None) -> Backend:
    from gendelbrot.backend.model.be_cpu import CpuBackend
    return CpuBackend()


def _cuda_backend(device: Optional[int] = None) -> Backend:
    from gendelbrot.backend.model.be_cuda import CudaBackend
    return CudaBackend(device=device)


def _opencl_backend(device: Optional[int] = None) -> Backend:
    from gendelbrot.backend.model.be_opencl import OpenClBackend
    return OpenClBackend(device=device)


# Small descriptor of a backend implementation
@dataclass(frozen=True)
class BackendSpec:
    factory: Callable[[Optional[int]], Backend]
    priority: int
    supports_devices: bool
    is_gpu: bool


# Default registry
DEFAULT_BACKENDS: Dict[str, BackendSpec] = {
    "CPU":    BackendSpec(factory=_cpu_backend,    priority=0,  supports_devices=False, is_gpu=False),
    "CUDA":   BackendSpec(factory=_cuda_backend,   priority=10, supports_devices=True,  is_gpu=True),
    "OPENCL": BackendSpec(factory=_opencl_backend, priority=8,  supports_devices=True,  is_gpu=True),
}


class BackendPool:
    """
    Creates, caches and compiles backend instances.
    Keyed by (backend_name, device_id_or_None).
    """

    def __init__(self, registry: Optional[Dict[str, BackendSpec]] = None) -> None:
        self.registry: Dict[str, BackendSpec] = registry or DEFAULT_BACKENDS
        self._cache: Dict[Tuple[str, Optional[int]], Backend] = {}

    def spec(self, name: str) -> BackendSpec:
        try:
            return self.registry[name.upper()]
        except KeyError as e:
            raise KeyError(f"Unknown backend '{name}'; known: {sorted(self.registry)}") from e

    def get(self, name: str, device: Optional[int], settings: RenderSettings) -> Backend:
        """
        Return a backend compiled for settings, creating it on first use.
        """
        spec = self.spec(name)
        key = (name.upper(), device if spec.supports_devices else None)
        be = self._cache.get(key)
        if be is None:
            be = spec.factory(key[1])
            self._cache[key] = be
        if be.settings != settings:
            logger.debug("Compiling %s for %s", be.name, settings)
            be.compile(settings)
        return be

    def close_all(self) -> None:
        for be in list(self._cache.values()):
            try:
                be.close()
            except Exception:
                logger.exception("Failed to close backend %s", getattr(be, "name", be))
        self._cache.clear()
