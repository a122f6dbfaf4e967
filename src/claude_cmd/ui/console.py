"""
Centralized console configuration for claude-cmd.

- console: Main console for command output (stdout)
- error_console: Console for errors, warnings and log records (stderr)
"""

from rich.console import Console

console = Console(color_system="auto")

# Log records and error messages go to stderr so piped listings stay clean
error_console = Console(
    stderr=True,
    color_system="auto",
)
