"""Catalog record editor: drafts, submission encoding and store sync."""
