"""Allow running the client with ``python -m microlend``."""

from .cli import main

if __name__ == "__main__":
    main()
