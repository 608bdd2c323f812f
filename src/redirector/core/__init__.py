"""Redirect table, request resolution, search and index rendering."""
