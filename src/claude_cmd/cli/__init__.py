"""Command-line interface for claude-cmd."""
