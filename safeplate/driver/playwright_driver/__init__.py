"""Playwright-based page driver for the inspection search site.

This module provides a PageDriver that runs the search and pagination in a
real browser while handing rows and detail views to the extractor as DOM
snapshots.
"""

from safeplate.driver.playwright_driver.playwright_driver import (
    PlaywrightPageDriver,
    SiteLayout,
)

__all__ = ["PlaywrightPageDriver", "SiteLayout"]
