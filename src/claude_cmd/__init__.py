"""claude-cmd: install and manage Claude slash commands."""

__version__ = "0.4.0"
