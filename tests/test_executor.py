import numpy as np
import pytest

from gendelbrot import render
from gendelbrot.devices.manager import DeviceManager
from gendelbrot.devices.providers.prov_cpu import CpuDeviceProvider
from gendelbrot.errors import BackendUnavailableError, PartitionError
from gendelbrot.fractals.base import RenderParameters, RenderSettings
from gendelbrot.rendering.executor import RenderExecutor
from gendelbrot.utils.enums import BackendType, PrecisionMode

from reference import reference_mask


@pytest.fixture
def executor():
    ex = RenderExecutor(devices=DeviceManager(providers=[CpuDeviceProvider()]))
    yield ex
    ex.close()


def test_render_cpu_with_events(executor, small_params):
    progress, frames = [], []
    image = executor.render(small_params, backend="cpu",
                            on_progress=progress.append, on_frame=frames.append)
    np.testing.assert_array_equal(image, reference_mask(small_params))
    assert progress[-1].percent == 100.0
    assert progress[-1].total == small_params.image_height
    assert len(frames) == 1
    assert frames[0].backend == "CPU"
    assert frames[0].width == 40 and frames[0].height == 30
    assert frames[0].elapsed >= 0.0
    assert frames[0].data is image


def test_auto_resolves_through_device_manager(executor, small_params):
    assert executor.choose_backend(None) == ("CPU", None)
    assert executor.choose_backend(BackendType.AUTO) == ("CPU", None)
    assert executor.render(small_params).size == small_params.total_pixels


def test_gpu_without_gpus(executor, small_params):
    with pytest.raises(BackendUnavailableError):
        executor.render(small_params, backend=BackendType.GPU)


def test_unknown_backend(executor, small_params):
    with pytest.raises(KeyError):
        executor.render(small_params, backend="metal")


def test_backend_is_cached_and_recompiled(executor, small_params):
    executor.render(small_params, backend="CPU")
    be = executor.pool.get("CPU", None, RenderSettings())
    f64 = RenderSettings(precision=PrecisionMode.from_tag("f64").dtype)
    image = executor.render(small_params, f64, backend="CPU")
    assert executor.pool.get("CPU", None, f64) is be
    np.testing.assert_array_equal(image, reference_mask(small_params, np.float64))


def test_module_level_render(small_params):
    image = render(small_params, backend="CPU")
    np.testing.assert_array_equal(image, reference_mask(small_params))


def test_invalid_parameters_fail_before_rendering():
    with pytest.raises(PartitionError):
        RenderParameters(image_width=0, image_height=10, real_start=0.0, i_start=0.0,
                         real_step=1.0, i_step=1.0, iteration_cap=10)
    with pytest.raises(PartitionError):
        RenderParameters.from_view((0.0, 0.0), (1.0, 1.0), (10, 10), 10, worker_count=0)
    with pytest.raises(PartitionError):
        RenderParameters.from_view((0.0, 0.0), (1.0, 1.0), (10, 10), -1)


def test_from_view_mapping():
    p = RenderParameters.from_view((-0.5, 0.0), (3.0, 3.0), (1024, 1024), 50)
    assert p.real_start == -2.0 and p.i_start == 1.5
    assert p.real_step == 3.0 / 1024 and p.i_step == 3.0 / 1024
    assert p.imaginary_coordinate(1024) == -1.5
    assert p.real_coordinate(512) == -0.5


def test_precision_mode():
    assert PrecisionMode.from_tag("F64") is PrecisionMode.Double
    assert PrecisionMode.Single.dtype is np.float32
    with pytest.raises(ValueError):
        PrecisionMode.from_tag("f16")
    with pytest.raises(ValueError):
        RenderSettings(precision=np.int32).precision_tag


def test_iteration_cap_fits_kernel_int():
    from gendelbrot.fractals.base import MAX_ITERATION_CAP
    p = RenderParameters.from_view((0.0, 0.0), (1.0, 1.0), (2, 2), MAX_ITERATION_CAP)
    assert p.iteration_cap == 2 ** 31 - 1
    with pytest.raises(PartitionError):
        RenderParameters.from_view((0.0, 0.0), (1.0, 1.0), (2, 2), MAX_ITERATION_CAP + 1)
