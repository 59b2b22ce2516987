"""Command-line interface for taming."""
