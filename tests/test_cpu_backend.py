from dataclasses import replace

import numpy as np
import pytest

from gendelbrot.backend.model.be_cpu import CpuBackend
from gendelbrot.errors import RenderError
from gendelbrot.fractals.base import RenderParameters, RenderSettings
from gendelbrot.fractals.mandelbrot import ComplexPoint, is_stable
from gendelbrot.rendering.progress import ProgressTracker

from reference import reference_mask


def test_matches_reference(cpu_backend, small_params):
    image = cpu_backend.render(small_params)
    assert image.dtype == np.uint8
    assert image.shape == (small_params.total_pixels,)
    assert set(np.unique(image)) <= {0, 255}
    np.testing.assert_array_equal(image, reference_mask(small_params))


@pytest.mark.parametrize("workers", [1, 2, 3, 5, 30, 40, 150])
def test_worker_count_does_not_change_image(cpu_backend, small_params, workers):
    expected = cpu_backend.render(small_params)
    image = cpu_backend.render(replace(small_params, worker_count=workers))
    np.testing.assert_array_equal(image, expected)


def test_render_is_idempotent(cpu_backend, small_params):
    first = cpu_backend.render(replace(small_params, worker_count=4))
    second = cpu_backend.render(replace(small_params, worker_count=4))
    np.testing.assert_array_equal(first, second)


def test_single_pixel_image(cpu_backend):
    params = RenderParameters(image_width=1, image_height=1, real_start=-0.5, i_start=0.25,
                              real_step=0.1, i_step=0.1, iteration_cap=50)
    image = cpu_backend.render(params)
    expected = 0 if is_stable(ComplexPoint(-0.5, 0.25), 50) else 255
    assert image.tolist() == [expected]


def test_center_pixel_of_default_view_is_stable(cpu_backend):
    params = RenderParameters.from_view((-0.5, 0.0), (3.0, 3.0), (64, 64), 50, 4)
    image = cpu_backend.render(params).reshape(64, 64)
    # Row 32, col 32 is exactly the view center (-0.5, 0)
    assert image[32, 32] == 0
    assert image[0, 0] == 255


def test_zero_cap_marks_everything_stable(cpu_backend):
    params = RenderParameters.from_view((0.0, 0.0), (10.0, 10.0), (8, 6), 0, 2)
    assert not cpu_backend.render(params).any()


def test_progress_counts_rows(cpu_backend, small_params):
    seen = []
    tracker = ProgressTracker(cpu_backend.progress_total(small_params), seen.append)
    cpu_backend.render(replace(small_params, worker_count=3), tracker)
    assert tracker.completed == small_params.image_height
    assert seen[-1].percent == 100.0
    assert sum(e.percent == 100.0 for e in seen) == 1
    completed = [e.completed for e in seen]
    assert all(a < b for a, b in zip(completed, completed[1:]))


def test_f64_render(small_params):
    with CpuBackend() as be:
        be.compile(RenderSettings(precision=np.float64))
        image = be.render(replace(small_params, worker_count=3))
        np.testing.assert_array_equal(image, reference_mask(small_params, np.float64))


def test_uncompiled_backend_raises(small_params):
    be = CpuBackend()
    with pytest.raises(RenderError):
        be.render(small_params)


def test_failing_worker_raises(small_params, monkeypatch):
    be = CpuBackend()
    be.compile(RenderSettings())
    real = be._render_band

    def flaky(params, band, progress):
        if band.index == 1:
            raise MemoryError("boom")
        return real(params, band, progress)

    monkeypatch.setattr(be, "_render_band", flaky)
    with pytest.raises(RenderError, match="band 1") as info:
        be.render(replace(small_params, worker_count=3))
    assert isinstance(info.value.__cause__, MemoryError)
    be.close()
