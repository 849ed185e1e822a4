"""
bunkit - download, verify and run a project-local Bun runtime.
"""

__version__ = "0.1.0"
