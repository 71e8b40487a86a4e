"""Allow running ghappclone as ``python -m ghappclone``."""

from ghappclone.cli import main

if __name__ == "__main__":
    main()
