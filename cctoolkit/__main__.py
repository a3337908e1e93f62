"""
Entry point for running the cctoolkit CLI as a module.

Usage: python -m cctoolkit [command] [options]
"""

from cctoolkit.cli.parser import main

if __name__ == "__main__":
    main()
