"""
Smart RSS - AI-assisted digests of RSS/Atom/JSON feed subscriptions.

This package fetches every feed of an OPML subscription list concurrently,
groups the items by category and asks a language model for a short digest
of each category.
"""

__version__ = "0.1.0"
