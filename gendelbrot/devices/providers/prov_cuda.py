from __future__ import annotations
from typing import List, Dict
import logging
logger = logging.getLogger(__name__)


class CudaDeviceProvider:
    backend = "CUDA"

    @staticmethod
    def enumerate() -> List[Dict]:
        """
        Probe CUDA devices through numba.cuda and return device dicts for
        DeviceInfo. Returns an empty list if CUDA is missing or the probe fails.
        """
        devs: List[Dict] = []
        try:
            from numba import cuda
            if not cuda.is_available():
                return devs
            gpus = cuda.list_devices()
        except Exception:
            logger.exception("numba.cuda not available or failed to initialize")
            return devs

        for i, d in enumerate(gpus):
            try:
                name = d.name.decode("utf-8") if isinstance(d.name, bytes) else str(d.name)
                cc = getattr(d, "compute_capability", None)
                if isinstance(cc, (tuple, list)) and len(cc) >= 2:
                    compute_capability = f"{cc[0]}.{cc[1]}"
                else:
                    compute_capability = None if cc is None else str(cc)
                devs.append({
                    "device_id": getattr(d, "id", i),
                    "name": name,
                    "vendor": "NVIDIA",
                    "compute_capability": compute_capability,
                    "memory_total_mb": None,
                    "is_gpu": True,
                    "is_available": True,
                    "extra": {},
                })
            except Exception:
                logger.exception("Failed to read CUDA device info for index %d", i)
        return devs
