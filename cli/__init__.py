"""Command-line client for dojo-log."""
