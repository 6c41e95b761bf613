"""Allow ``python -m ground_tracks``."""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
