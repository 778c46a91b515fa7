"""Structured change logging for reconciliation runs."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import logging
import structlog


def configure_logging(
    *,
    log_level: str | int,
    json_format: bool = False,
) -> None:
    # Resolve log level via stdlib logging (NOT structlog)
    if isinstance(log_level, str):
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = int(log_level)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet down httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    processors = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Entity kinds
ORG_UNIT = "org_unit"
SCHEMA = "schema"
USER = "user"
ALIAS = "alias"
LICENSE = "license"
GROUP = "group"
MEMBER = "member"


class Action(str, Enum):
    """What happened (or would happen) to an entity."""

    UNCHANGED = "unchanged"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]


_PREFIXES = {
    Action.UNCHANGED: "✓",
    Action.UPDATE: "✎",
    Action.CREATE: "+",
    Action.DELETE: "-",
}

# Nested entities are labelled, top-level ones are identified by key alone
_LABELLED_KINDS = {ALIAS, LICENSE}


@dataclass(frozen=True)
class Change:
    """A single per-entity mark made during a run."""

    kind: str
    key: str
    action: Action
    parent: str | None = None

    @property
    def is_mutation(self) -> bool:
        return self.action is not Action.UNCHANGED

    def line(self) -> str:
        indent = "    " if self.parent else "  "
        label = f"{self.kind} " if self.kind in _LABELLED_KINDS else ""
        return f"{indent}{self.action.prefix} {label}{self.key}"


class ChangeLog:
    """Records and logs every mark a reconciliation run makes."""

    def __init__(self, logger: Any = None):
        """Initialize change log.

        Args:
            logger: Optional custom logger
        """
        self._logger = logger or structlog.get_logger("changes")
        self._changes: list[Change] = []
        self._lines: list[str] = []

    def section(self, title: str) -> None:
        """Start a new section of the report (one per entity kind)."""
        self._lines.append(f"⇄ {title}")
        self._logger.debug(event="sync_section", section=title)

    def record(
        self,
        kind: str,
        key: str,
        action: Action,
        parent: str | None = None,
    ) -> Change:
        change = Change(kind=kind, key=key, action=action, parent=parent)
        self._changes.append(change)
        self._lines.append(change.line())

        log_data: dict[str, Any] = {
            "event": change.line().strip(),
            "kind": kind,
            "key": key,
            "action": action.value,
        }
        if parent:
            log_data["parent"] = parent
        # printed again by summary(), so kept below INFO
        self._logger.debug(**log_data)
        return change

    def unchanged(self, kind: str, key: str, parent: str | None = None) -> Change:
        return self.record(kind, key, Action.UNCHANGED, parent)

    def create(self, kind: str, key: str, parent: str | None = None) -> Change:
        return self.record(kind, key, Action.CREATE, parent)

    def update(self, kind: str, key: str, parent: str | None = None) -> Change:
        return self.record(kind, key, Action.UPDATE, parent)

    def delete(self, kind: str, key: str, parent: str | None = None) -> Change:
        return self.record(kind, key, Action.DELETE, parent)

    @property
    def changes(self) -> list[Change]:
        return list(self._changes)

    @property
    def has_changes(self) -> bool:
        return any(c.is_mutation for c in self._changes)

    def filter(
        self,
        kind: str | None = None,
        action: Action | None = None,
        parent: str | None = None,
    ) -> list[Change]:
        """Return the recorded changes matching every given criterion."""
        return [
            c
            for c in self._changes
            if (kind is None or c.kind == kind)
            and (action is None or c.action is action)
            and (parent is None or c.parent == parent)
        ]

    def summary(self) -> str:
        """Generate human-readable report of the run."""
        counts = {action: 0 for action in Action}
        for change in self._changes:
            counts[change.action] += 1

        lines = list(self._lines)
        if lines:
            lines.append("")
        lines.append(
            f"{counts[Action.CREATE]} to create, {counts[Action.UPDATE]} to update, "
            f"{counts[Action.DELETE]} to delete, {counts[Action.UNCHANGED]} unchanged"
        )
        return "\n".join(lines)
