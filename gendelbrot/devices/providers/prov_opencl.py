from __future__ import annotations
from typing import List, Dict
import logging
logger = logging.getLogger(__name__)


class OpenClDeviceProvider:
    backend = "OPENCL"

    @staticmethod
    def enumerate() -> List[Dict]:
        """
        Probe pyopencl platforms/devices and return a list of device dicts
        compatible with DeviceInfo construction in DeviceManager.
        """
        devs: List[Dict] = []
        try:
            import pyopencl as cl
            plats = cl.get_platforms()
        except Exception as e:
            # No ICD loader or no platforms is the common case, not an error
            logger.debug("OpenCL enumerate failed: %s", e)
            return devs

        ordinal = 0
        for p in plats:
            for d in p.get_devices():
                try:
                    devs.append({
                        "device_id": ordinal,
                        "name": getattr(d, "name", None) or f"OpenCL Device {ordinal}",
                        "vendor": getattr(d, "vendor", None),
                        "compute_capability": getattr(d, "version", None) or getattr(p, "version", None),
                        "memory_total_mb": int(getattr(d, "global_mem_size", 0) // (1024 ** 2)),
                        "is_gpu": bool(d.type & cl.device_type.GPU),
                        "is_available": True,
                        "extra": {
                            "cores": getattr(d, "max_compute_units", None),
                            "fp64": bool(getattr(d, "double_fp_config", None)),
                        },
                    })
                except Exception:
                    logger.exception(
                        "Failed to read OpenCL device info for platform %s",
                        getattr(p, "name", "<unknown>"))
                ordinal += 1
        return devs
