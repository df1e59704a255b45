"""Incremental Douban RSS to CSV archive sync."""

__version__ = "0.1.0"
