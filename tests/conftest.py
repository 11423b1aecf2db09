import os

# Run CUDA kernels on Numba's simulator unless a caller chose otherwise.
# Must happen before numba is first imported.
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import numpy as np
import pytest

from gendelbrot.fractals.base import RenderParameters, RenderSettings


@pytest.fixture
def small_params():
    """40x30 view of the whole set."""
    return RenderParameters.from_view((-0.5, 0.0), (3.0, 3.0), (40, 30), iteration_cap=50)


@pytest.fixture
def settings():
    return RenderSettings(precision=np.float32)


@pytest.fixture(scope="session")
def cpu_backend():
    from gendelbrot.backend.model.be_cpu import CpuBackend
    be = CpuBackend()
    be.compile(RenderSettings())
    yield be
    be.close()
