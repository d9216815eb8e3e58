"""Command-line tools for kbase."""
