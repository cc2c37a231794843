"""Versioned record contracts for dojo-log."""
