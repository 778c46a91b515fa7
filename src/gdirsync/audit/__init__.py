"""Change reporting and logging setup."""

from gdirsync.audit.logger import Action, Change, ChangeLog, configure_logging

__all__ = ["Action", "Change", "ChangeLog", "configure_logging"]
