"""Platform abstraction layer (processes and filesystem)."""

from .files import atomic_write_text, entry_exists, remove_entry
from .process import ProcessError, ShellRunner, run, run_shell

__all__ = [
    # files
    "atomic_write_text",
    "entry_exists",
    "remove_entry",
    # process
    "ProcessError",
    "ShellRunner",
    "run",
    "run_shell",
]
