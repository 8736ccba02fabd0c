"""Module entrypoint: python -m wslmgr."""

import sys

from wslmgr.cli import main

if __name__ == "__main__":
    sys.exit(main())
