import pytest

import gendelbrot.kernel_sources.cpu.mandelbrot  # noqa: F401
import gendelbrot.kernel_sources.opencl.mandelbrot  # noqa: F401
from gendelbrot.kernel_sources import registry
from gendelbrot.kernel_sources.registry import list_kernels, load_kernel, register_kernel


def test_builtin_kernels_registered():
    assert list_kernels("cpu") == ["f32", "f64"]
    assert list_kernels("OPENCL") == ["f32", "f64"]
    meta = load_kernel("OPENCL", "f64")
    assert meta["kernel_name"] == "mandelbrot_mask"
    assert "-D" in meta["build_options"]
    assert "FP_CONTRACT OFF" in meta["src"]


def test_unknown_kernel():
    with pytest.raises(KeyError):
        load_kernel("CPU", "f16")
    with pytest.raises(KeyError):
        load_kernel("VULKAN", "f32")


def test_register_validates_meta(monkeypatch):
    monkeypatch.setattr(registry, "_REGISTRY", {})
    with pytest.raises(KeyError):
        register_kernel("CUDA", "f32", arg_order=["image"])
    with pytest.raises(KeyError):
        register_kernel("OPENCL", "f32", src="", arg_order=[])
    with pytest.raises(KeyError):
        register_kernel("CPU", "f32", func=len, arg_order="image")

    register_kernel("cpu", "f32", func=len, arg_order=["x"])
    assert load_kernel("CPU", "f32")["func"] is len
    assert list(registry.iter_registry()) == ["CPU"]
