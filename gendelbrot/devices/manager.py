from __future__ import annotations
import logging
from typing import List, Optional, Dict, Any
from dataclasses import replace

from gendelbrot.devices.types import DeviceInfo
from gendelbrot.devices.providers.prov_cpu import CpuDeviceProvider
from gendelbrot.devices.providers.prov_cuda import CudaDeviceProvider
from gendelbrot.devices.providers.prov_opencl import OpenClDeviceProvider
from gendelbrot.errors import BackendUnavailableError


logger = logging.getLogger(__name__)

BACKEND_PRIORITY = {"CPU": 0, "OPENCL": 8, "CUDA": 10}


class DeviceManager:
    """
    Enumerates, scores, and selects devices via pluggable providers.
    """
    def __init__(self, providers: Optional[List[Any]] = None) -> None:
        self.providers = providers or [CudaDeviceProvider(), OpenClDeviceProvider(), CpuDeviceProvider()]
        self._devices: List[DeviceInfo] = []
        self.refresh()

    # ---- Discovery ------------------------------------------------------

    def refresh(self) -> None:
        devices: List[DeviceInfo] = []
        for p in self.providers:
            try:
                for raw in p.enumerate():
                    di = raw if isinstance(raw, DeviceInfo) else DeviceInfo(backend=p.backend, **raw)
                    devices.append(di)
            except Exception:
                logger.exception("Device provider %s failed", getattr(p, "backend", p))
        self._devices = self._score_devices(devices)

    def list(self, backend: Optional[str] = None) -> List[DeviceInfo]:
        if backend:
            be = backend.upper()
            return [d for d in self._devices if d.backend.upper() == be]
        return list(self._devices)

    # ---- Selection ------------------------------------------------------

    def choose(
        self,
        backend: Optional[str] = None,
        device: Optional[int] = None,
        gpu_only: bool = False,
    ) -> DeviceInfo:
        cand = self.list(backend) if backend else list(self._devices)
        if gpu_only:
            cand = [d for d in cand if d.is_gpu]

        if device is not None:
            for d in cand:
                if d.device_id == device:
                    return d
            raise BackendUnavailableError(f"No device {device} for backend {backend or '*'}")

        if not cand:
            what = "GPU devices" if gpu_only else f"devices for backend {backend or '*'}"
            raise BackendUnavailableError(f"No {what} available")
        return cand[0]

    # ---- Scoring --------------------------------------------------------

    @staticmethod
    def _normalize(xs: List[float]) -> List[float]:
        if not xs: return []
        lo, hi = min(xs), max(xs)
        if hi <= lo: return [0.5 for _ in xs]
        r = hi - lo
        return [(x - lo) / r for x in xs]

    @staticmethod
    def _parse_cc(cc: object) -> float:
        """
        Extract a numeric compute indicator: supports '8.6', 'OpenCL 3.0', 'sm_86', etc.
        """
        s = str(cc or "")
        num = ""
        for ch in s:
            if ch.isdigit() or ch == ".":
                num += ch
            elif num:
                break
        try:
            return float(num) if num else 0.0
        except ValueError:
            return 0.0

    def _score_devices(self, devices: List[DeviceInfo]) -> List[DeviceInfo]:
        devices = [d for d in devices if d.is_available]
        if not devices: return []

        # OpenCL on a CPU ranks below the native CPU backend
        n_prio = self._normalize([
            float(BACKEND_PRIORITY.get(d.backend.upper(), -1)) if d.is_gpu or d.backend.upper() == "CPU" else -1.0
            for d in devices
        ])
        n_mem = self._normalize([float(d.memory_total_mb or 0) for d in devices])
        n_comp = self._normalize([self._parse_cc(d.compute_capability) for d in devices])

        scored = [
            replace(d, score=float(0.6 * n_prio[i] + 0.2 * n_mem[i] + 0.2 * n_comp[i]))
            for i, d in enumerate(devices)
        ]
        scored.sort(key=lambda di: di.score, reverse=True)
        return scored
