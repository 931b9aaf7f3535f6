"""Command-line interface for Clarity Finance."""
