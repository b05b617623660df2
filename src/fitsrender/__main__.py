"""
Allow running fitsrender as a module: python -m fitsrender

Author: fitsrender contributors
"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
