"""
Entry point for running studypace as a module.

Usage:
    python -m studypace.delivery queue
    python -m studypace.delivery stats math --remaining 120
    python -m studypace.delivery --help
"""
from .cli import main

if __name__ == "__main__":
    main()
