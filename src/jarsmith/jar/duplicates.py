"""Duplicate entry policies.

A DuplicateHandler maps a destination path to the action taken when more
than one candidate entry competes for it: the first matching policy wins,
else the handler's default action applies.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jarsmith.core.config import ConfigResolver

PathSelector = Callable[[str], bool]


class DuplicateAction(Enum):
    """Identifies an action to take when duplicate jar entries are encountered."""

    SKIP = "skip"
    """Keep the original (first scheduled) entry and skip the duplicates."""

    REPLACE = "replace"
    """Replace the original entries with the last scheduled duplicate."""

    CONCAT = "concat"
    """Append the content of every duplicate to the original entry."""

    THROW = "throw"
    """Fail the write with a DuplicateEntryError."""

    @classmethod
    def parse(cls, value: str | DuplicateAction) -> DuplicateAction:
        if isinstance(value, DuplicateAction):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(a.value for a in cls)
            msg = f"Unknown duplicate action {value!r}. Allowed values: {allowed}"
            raise ValueError(msg) from None


def _always(_path: str) -> bool:
    return True


@dataclass(frozen=True)
class DuplicatePolicy:
    """A policy for treatment of duplicate entries whose paths ``selector`` accepts."""

    selector: PathSelector
    action: DuplicateAction

    @classmethod
    def path_matches(cls, regex: str | re.Pattern[str], action: DuplicateAction) -> DuplicatePolicy:
        """Creates a policy for entries whose path contains a match for ``regex``."""
        pattern = re.compile(regex)
        return cls(lambda path: pattern.search(path) is not None, action)

    def applies_to(self, jar_path: str) -> bool:
        return self.selector(jar_path)


class DuplicateHandler:
    """Selects the action to apply to duplicate entries based on their path."""

    def __init__(
        self,
        default_action: DuplicateAction,
        policies: Iterable[DuplicatePolicy] = (),
    ) -> None:
        self.default_action = default_action
        self.policies: tuple[DuplicatePolicy, ...] = tuple(policies)

    def __repr__(self) -> str:
        return (
            f"DuplicateHandler(default_action={self.default_action.name}, "
            f"policies={len(self.policies)})"
        )

    @classmethod
    def always(cls, action: DuplicateAction) -> DuplicateHandler:
        """A handler that applies ``action`` to every duplicate."""
        return cls(action, [DuplicatePolicy(_always, action)])

    @classmethod
    def skip_duplicates_concat_well_known_metadata(cls) -> DuplicateHandler:
        """Concatenate META-INF/services/ registrations and skip other duplicates."""
        concat_services = DuplicatePolicy.path_matches("^META-INF/services/", DuplicateAction.CONCAT)
        return cls(DuplicateAction.SKIP, [concat_services])

    @classmethod
    def from_config(cls, resolver: ConfigResolver) -> DuplicateHandler:
        """Build a handler from the duplicates.* configuration keys."""
        policies = [
            DuplicatePolicy.path_matches(spec.pattern, DuplicateAction.parse(spec.action))
            for spec in resolver.resolve_policies()
        ]
        return cls(DuplicateAction.parse(resolver.resolve_default_action()), policies)

    def action_for(self, jar_path: str) -> DuplicateAction:
        for policy in self.policies:
            if policy.applies_to(jar_path):
                return policy.action
        return self.default_action
