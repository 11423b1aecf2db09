"""
Benchmark the stability-mask renderer across backends (CPU / CUDA / OpenCL).

Usage examples:
  python -m gendelbrot.benchmarking.benchmark --backends cpu,cuda,opencl \
      --res 1024x1024,2048x2048 --threads 16 --runs 3

  python -m gendelbrot.benchmarking.benchmark --backends cpu --threads 1,4,16 --precision f64
"""

import argparse
import csv
import logging
import platform
import time
from typing import List, Optional, Tuple

from gendelbrot.devices.manager import DeviceManager
from gendelbrot.fractals.base import RenderParameters, RenderSettings
from gendelbrot.rendering.executor import RenderExecutor
from gendelbrot.utils.enums import PrecisionMode


logger = logging.getLogger(__name__)


# --- Helpers -----------------------------------------------------------------

def parse_resolution_list(res_str: str) -> List[Tuple[int, int]]:
    """
    Parse resolutions like "800x600,1280x720".
    """
    if not res_str:
        return [(1024, 1024)]
    out: List[Tuple[int, int]] = []
    for token in res_str.split(','):
        token = token.strip().lower()
        if not token:
            continue
        w, h = token.split('x')
        out.append((int(w), int(h)))
    return out


def parse_int_list(text: str) -> List[int]:
    return [int(t) for t in text.split(',') if t.strip()]


def device_summary(devices: DeviceManager) -> Tuple[str, str]:
    """
    Return (CPU summary, Accelerator summary string).
    """
    cpu_info = platform.processor() or platform.machine()
    accel = [f"{d.backend}: {d.name}" for d in devices.list() if d.is_gpu]
    return cpu_info or "Unknown CPU", "; ".join(accel) if accel else "No accelerator"


# --- Benchmark core ----------------------------------------------------------

def benchmark_combo(executor: RenderExecutor,
                    backend: str,
                    params: RenderParameters,
                    settings: RenderSettings,
                    runs: int,
                    warmup: int = 1) -> Tuple[float, float]:
    """
    Runs warmups (not timed), then 'runs' timed renders.
    Returns (avg_time_seconds, fps).
    """
    # First call compiles the kernels
    for _ in range(max(0, warmup)):
        executor.render(params, settings, backend=backend)

    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        executor.render(params, settings, backend=backend)
        times.append(time.perf_counter() - t0)

    avg = sum(times) / len(times)
    fps = 1.0 / avg if avg > 0 else 0.0
    return avg, fps


def canonical_parameters(width: int, height: int, iterations: int, threads: int) -> RenderParameters:
    return RenderParameters.from_view((-0.5, 0.0), (3.0, 3.0), (width, height), iterations, threads)


# --- CSV writer --------------------------------------------------------------

def write_csv_row(writer,
                  label: str,
                  rows_by_backend: List[Tuple[str, Optional[Tuple[float, float]]]]) -> None:
    """
    rows_by_backend: list of (backend_label, (avg, fps)); the tuple is None when the backend failed.
    """
    base = [label]
    for _, result in rows_by_backend:
        if result is None:
            base.extend(["n/a", "n/a"])
        else:
            avg, fps = result
            base.extend([f"{avg:.4f}", f"{fps:.2f}"])
    writer.writerow(base)


# --- CLI ---------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Benchmark the Mandelbrot stability-mask renderer.")
    p.add_argument("--backends", type=str, default="cpu,cuda,opencl",
                   help="Comma separated list: cpu,cuda,opencl")
    p.add_argument("--res", type=str, default="1024x1024", help="Comma separated WxH list")
    p.add_argument("--threads", type=str, default="1",
                   help="Comma separated CPU worker counts (GPU backends ignore it)")
    p.add_argument("--iterations", type=int, default=50)
    p.add_argument("--precision", type=str, default="f32", choices=["f32", "f64"])
    p.add_argument("--runs", type=int, default=3)
    p.add_argument("--warmup", type=int, default=1)
    p.add_argument("--csv", type=str, default="benchmark_results.csv")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    backend_tags = [t.strip().upper() for t in args.backends.split(",") if t.strip()]
    resolutions = parse_resolution_list(args.res)
    thread_counts = parse_int_list(args.threads) or [1]
    settings = RenderSettings(precision=PrecisionMode.from_tag(args.precision).dtype)

    with RenderExecutor() as executor:
        cpu_info, accel_info = device_summary(executor.devices)
        print("=== Hardware Summary ===")
        print("CPU:", cpu_info)
        print("Accel:", accel_info)
        print()

        # CPU gets one column per worker count
        columns: List[Tuple[str, str, int]] = []
        for tag in backend_tags:
            if tag == "CPU":
                columns.extend((f"CPU x{n}", tag, n) for n in thread_counts)
            else:
                columns.append((tag, tag, 1))

        with open(args.csv, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["Hardware Summary"])
            writer.writerow(["CPU", cpu_info])
            writer.writerow(["Accelerators", accel_info])
            writer.writerow(["Precision", args.precision])
            writer.writerow(["Iterations", args.iterations])
            writer.writerow([])

            header = ["Resolution"]
            for label, _, _ in columns:
                header.extend([f"{label} Time (s)", f"{label} FPS"])
            writer.writerow(header)

            for (w, h) in resolutions:
                print(f"=== {w}x{h} ===")
                row_results: List[Tuple[str, Optional[Tuple[float, float]]]] = []
                for label, tag, threads in columns:
                    params = canonical_parameters(w, h, args.iterations, threads)
                    try:
                        avg, fps = benchmark_combo(executor, tag, params, settings,
                                                   runs=args.runs, warmup=args.warmup)
                        print(f"{label:>12}  avg={avg:.4f}s  fps={fps:.2f}")
                        row_results.append((label, (avg, fps)))
                    except Exception as e:
                        logger.debug("Benchmark of %s failed", label, exc_info=True)
                        print(f"{label:>12}  FAIL: {e}")
                        row_results.append((label, None))
                write_csv_row(writer, f"{w}x{h}", row_results)
                print()

    print(f"Benchmark results saved to {args.csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
