"""Core infrastructure shared by claude-cmd services."""
