import sys

from gendelbrot.cli import main

sys.exit(main())
