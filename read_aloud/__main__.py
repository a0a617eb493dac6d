"""Package entry point for ``python -m read_aloud``."""

from read_aloud.cli import main

if __name__ == "__main__":
    main()
