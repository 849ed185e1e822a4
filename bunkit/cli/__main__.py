"""
Entry point for running bunkit CLI as a module.

Usage: python -m bunkit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
