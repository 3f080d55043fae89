"""Allow running as ``python -m bookdrop``."""

from bookdrop.cli import main

if __name__ == "__main__":
    main()
