"""
Command line front end: render the Mandelbrot stability mask to an image.

Usage examples:
  gendelbrot -t 8 -i 200 -d 1920 1080 -o full.png
  gendelbrot --gpu -c -0.745 0.11 -s 0.02 0.02 -i 1000 -o seahorse.png
  python -m gendelbrot --backend opencl --precision f64 --device 1
"""

import logging
import sys
from argparse import ArgumentParser
from typing import List, Optional

import numpy as np

from gendelbrot.errors import RenderError
from gendelbrot.fractals.base import RenderConfig
from gendelbrot.rendering.assembler import as_image
from gendelbrot.rendering.events import ProgressEvent
from gendelbrot.rendering.executor import RenderExecutor
from gendelbrot.utils.enums import PrecisionMode
from gendelbrot.utils.image import save_buffer


logger = logging.getLogger(__name__)

_DEFAULTS = RenderConfig()


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="gendelbrot",
                            description="Render the Mandelbrot set as a black and white image.")

    parser.add_argument('-t', '--threads', type=int, dest='threads',
                        help='number of CPU worker threads', metavar='N',
                        default=_DEFAULTS.threads)

    parser.add_argument('-i', '--iterations', type=int, dest='iterations',
                        help='iteration cap of the escape test', metavar='N',
                        default=_DEFAULTS.iterations)

    parser.add_argument('-c', '--center', type=float, nargs=2, dest='center',
                        help='center of the view in the complex plane', metavar=('X', 'Y'),
                        default=list(_DEFAULTS.center))

    parser.add_argument('-s', '--size', type=float, nargs=2, dest='size',
                        help='width and height of the view in the complex plane', metavar=('W', 'H'),
                        default=list(_DEFAULTS.size))

    parser.add_argument('-d', '--image-size', type=int, nargs=2, dest='image_size',
                        help='output size in pixels', metavar=('W', 'H'),
                        default=list(_DEFAULTS.image_size))

    parser.add_argument('-o', '--file', type=str, dest='output',
                        help='output image path; the extension picks the format', metavar='PATH',
                        default=_DEFAULTS.output)

    parser.add_argument('--gpu', action='store_true', dest='gpu',
                        help='render on the best available GPU backend')

    parser.add_argument('--backend', type=str.lower, dest='backend',
                        choices=['auto', 'cpu', 'cuda', 'opencl'], default=None,
                        help='backend to render with (default: cpu, or the best GPU with --gpu)')

    parser.add_argument('--precision', type=str.lower, dest='precision',
                        choices=['f32', 'f64'], default='f32',
                        help='floating point precision of the kernels')

    parser.add_argument('--device', type=int, dest='device', metavar='N', default=None,
                        help='device ordinal for the CUDA / OpenCL backends')

    parser.add_argument('-q', '--quiet', action='store_true', dest='quiet',
                        help='do not display progress')

    parser.add_argument('-v', '--verbose', action='store_true', dest='verbose',
                        help='log debug output')
    return parser


def config_from_args(args) -> RenderConfig:
    if args.gpu and args.backend in (None, 'auto'):
        backend = "GPU"
    else:
        backend = (args.backend or "cpu").upper()
    return RenderConfig(
        center=(args.center[0], args.center[1]),
        size=(args.size[0], args.size[1]),
        image_size=(args.image_size[0], args.image_size[1]),
        iterations=args.iterations,
        threads=args.threads,
        output=args.output,
        backend=backend,
        precision=PrecisionMode.from_tag(args.precision).dtype,
        device=args.device,
    )


class ProgressPrinter:
    """Rewrites a single 'Progress: N%' line on a stream."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stderr
        self._last = -1

    def __call__(self, evt: ProgressEvent) -> None:
        pct = int(evt.percent)
        if pct == self._last:
            return
        self._last = pct
        self.stream.write(f"\rProgress: {pct}%")
        self.stream.flush()

    def finish(self) -> None:
        if self._last >= 0:
            self.stream.write("\n")
            self.stream.flush()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        cfg = config_from_args(args)
        params = cfg.to_parameters()
    except ValueError as e:
        parser.error(str(e))

    settings = cfg.to_settings()
    printer = None if args.quiet else ProgressPrinter()

    try:
        with RenderExecutor() as executor:
            image = executor.render(params, settings, backend=cfg.backend,
                                    device=cfg.device, on_progress=printer)
    except RenderError as e:
        if printer is not None:
            printer.finish()
        logger.error("Render failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1
    if printer is not None:
        printer.finish()

    try:
        path = save_buffer(cfg.output, as_image(image, params))
    except (OSError, ValueError) as e:
        print(f"error: cannot write {cfg.output}: {e}", file=sys.stderr)
        return 1

    stable = int(np.count_nonzero(image == 0))
    logger.info("%d of %d pixels stable", stable, params.total_pixels)
    print(f"Image written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
