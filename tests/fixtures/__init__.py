"""Test fixtures for bunkit tests.

- archives: Fake Bun release zips and the metadata pages that list their digests

Import fixtures in your tests using:
    from tests.fixtures.archives import bun_zip_bytes
"""

__all__ = ["archives"]
