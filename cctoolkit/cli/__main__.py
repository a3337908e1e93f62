"""
Entry point for running the cctoolkit CLI as a module.

Usage: python -m cctoolkit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
