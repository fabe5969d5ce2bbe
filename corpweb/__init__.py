"""
Corporation registry scraper.

This package fetches corporation summary pages from the Rhode Island
Secretary of State business registry, extracts each page into a typed
record, and emits the records as JSON lines.
"""
