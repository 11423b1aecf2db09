import csv

import numpy as np
import pytest
from PIL import Image

from gendelbrot.benchmarking import benchmark
from gendelbrot.cli import build_parser, config_from_args, main
from gendelbrot.utils.image import save_buffer


def test_defaults():
    cfg = config_from_args(build_parser().parse_args([]))
    assert cfg.threads == 1
    assert cfg.iterations == 50
    assert cfg.center == (-0.5, 0.0)
    assert cfg.size == (3.0, 3.0)
    assert cfg.image_size == (1024, 1024)
    assert cfg.output == "mandelbrot.png"
    assert cfg.backend == "CPU"
    assert cfg.precision is np.float32


def test_gpu_and_backend_flags():
    parser = build_parser()
    assert config_from_args(parser.parse_args(["--gpu"])).backend == "GPU"
    assert config_from_args(parser.parse_args(["--gpu", "--backend", "opencl"])).backend == "OPENCL"
    cfg = config_from_args(parser.parse_args(["--backend", "CUDA", "--precision", "f64", "--device", "1"]))
    assert cfg.backend == "CUDA" and cfg.device == 1 and cfg.precision is np.float64


def test_render_to_png(tmp_path, capsys):
    out = tmp_path / "m.png"
    rc = main(["-t", "3", "-i", "30", "-d", "40", "30", "-o", str(out)])
    assert rc == 0

    captured = capsys.readouterr()
    assert "\rProgress: 100%" in captured.err
    assert str(out) in captured.out

    with Image.open(out) as img:
        assert img.mode == "L"
        assert img.size == (40, 30)
        pixels = np.asarray(img)
    assert set(np.unique(pixels)) <= {0, 255}
    assert pixels[15, 20] == 0


def test_quiet_hides_progress(tmp_path, capsys):
    rc = main(["-q", "-d", "8", "8", "-o", str(tmp_path / "q.bmp")])
    assert rc == 0
    assert "Progress" not in capsys.readouterr().err


def test_unknown_extension_fails(tmp_path, capsys):
    rc = main(["-q", "-d", "8", "8", "-o", str(tmp_path / "m.notanimage")])
    assert rc == 1
    assert "cannot write" in capsys.readouterr().err


@pytest.mark.parametrize("argv", [["-t", "0"], ["-d", "0", "10"], ["--backend", "vulkan"],
                                  ["-c", "1.0"], ["-i", str(2 ** 31)]])
def test_invalid_arguments_exit_2(argv):
    with pytest.raises(SystemExit) as info:
        main(argv)
    assert info.value.code == 2


def test_save_buffer_checks_size(tmp_path):
    with pytest.raises(ValueError):
        save_buffer(str(tmp_path / "x.png"), np.zeros(5, dtype=np.uint8), 2, 2)
    path = save_buffer(str(tmp_path / "x.png"), np.full(4, 255, dtype=np.uint8), 2, 2)
    with Image.open(path) as img:
        assert np.asarray(img).tolist() == [[255, 255], [255, 255]]


def test_benchmark_writes_csv(tmp_path, capsys):
    out = tmp_path / "bench.csv"
    rc = benchmark.main(["--backends", "cpu", "--res", "16x16", "--threads", "1,2",
                         "--runs", "1", "--warmup", "0", "--csv", str(out)])
    assert rc == 0
    with open(out, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["Hardware Summary"]
    header = next(r for r in rows if r and r[0] == "Resolution")
    assert header[1:] == ["CPU x1 Time (s)", "CPU x1 FPS", "CPU x2 Time (s)", "CPU x2 FPS"]
    assert rows[-1][0] == "16x16"
    assert "n/a" not in rows[-1]


def test_parse_resolution_list():
    assert benchmark.parse_resolution_list("800x600, 1280X720") == [(800, 600), (1280, 720)]
    assert benchmark.parse_resolution_list("") == [(1024, 1024)]


def test_opencl_without_platform_exits_1(tmp_path, monkeypatch, capsys):
    cl = pytest.importorskip("pyopencl")

    def no_platforms():
        raise RuntimeError("clGetPlatformIDs failed: PLATFORM_NOT_FOUND_KHR")

    monkeypatch.setattr(cl, "get_platforms", no_platforms)
    rc = main(["-q", "--backend", "opencl", "-d", "8", "8", "-o", str(tmp_path / "m.png")])
    assert rc == 1
    assert "PLATFORM_NOT_FOUND_KHR" in capsys.readouterr().err
    assert not (tmp_path / "m.png").exists()


def test_missing_cuda_device_exits_1(tmp_path):
    from numba import cuda
    if not cuda.is_available():
        pytest.skip("CUDA (or its simulator) not available")
    rc = main(["-q", "--backend", "cuda", "--device", "7", "-d", "8", "8",
               "-o", str(tmp_path / "m.png")])
    assert rc == 1


def test_save_buffer_accepts_images(tmp_path):
    image = np.zeros((3, 2), dtype=np.uint8)
    path = save_buffer(str(tmp_path / "i.png"), image)
    with Image.open(path) as img:
        assert img.size == (2, 3)
        assert img.mode == "L"
    with pytest.raises(ValueError):
        save_buffer(str(tmp_path / "j.png"), image, 3, 2)
    with pytest.raises(ValueError):
        save_buffer(str(tmp_path / "k.png"), np.zeros(6, dtype=np.uint8))
