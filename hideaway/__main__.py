"""Allow `python -m hideaway`."""
import sys

from .cli import main

sys.exit(main())
