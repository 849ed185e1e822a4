"""
Entry point for running bunkit CLI as a module.

Usage: python -m bunkit [command] [options]
"""

from bunkit.cli.parser import main

if __name__ == "__main__":
    main()
