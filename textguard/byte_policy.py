"""Byte policies shared by the boundary filter and the value normalizer.

A ``BytePolicy`` names the sequences a storage text type refuses (the NUL
byte for PostgreSQL) and what to do about them. Policies are frozen and
built once from app config; nothing mutates them afterwards, so they can be
read from any number of request threads.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AnyStr

NUL = "\x00"


class PolicyAction(str, Enum):
    REJECT = "reject"
    STRIP = "strip"
    REPLACE = "replace"


# Tipos de campo declarados que podem receber uma política própria
FIELD_TYPES = ("text", "binary")


def _as(seq: str, like: Any) -> Any:
    if isinstance(like, bytes):
        return seq.encode("utf-8")
    return seq


@dataclass(frozen=True)
class BytePolicy:
    disallowed: tuple[str, ...] = (NUL,)
    action: PolicyAction = PolicyAction.STRIP
    replacement: str = ""
    transform_none: bool = False

    def __post_init__(self) -> None:
        seqs = tuple(dict.fromkeys(self.disallowed))
        if not seqs:
            raise ValueError("BytePolicy requires at least one sequence.")
        if any(not isinstance(s, str) or not s for s in seqs):
            raise ValueError("Disallowed sequences must be non-empty str.")
        action = PolicyAction(self.action)
        if action is PolicyAction.REPLACE:
            banned = set("".join(seqs))
            if banned & set(self.replacement):
                # A substituição não pode reintroduzir um byte proibido
                raise ValueError(
                    "Replacement shares characters with a disallowed "
                    "sequence; the transform would not be idempotent."
                )
        object.__setattr__(self, "disallowed", seqs)
        object.__setattr__(self, "action", action)

    @property
    def transforms(self) -> bool:
        return self.action is not PolicyAction.REJECT

    def find(self, value: AnyStr) -> AnyStr | None:
        """Return the first disallowed sequence present in ``value``."""
        for seq in self.disallowed:
            needle = _as(seq, value)
            if needle in value:
                return needle
        return None

    def contains(self, value: AnyStr) -> bool:
        return self.find(value) is not None

    def apply(self, value: AnyStr) -> AnyStr:
        """Strip or replace every disallowed sequence in ``value``.

        Runs to a fixed point: removing one sequence can join its
        neighbours into another, so a single pass is not idempotent for
        multi-character sequences.
        """
        if self.action is PolicyAction.REJECT:
            raise ValueError("A reject policy has no transform.")
        replacement = (
            _as(self.replacement, value)
            if self.action is PolicyAction.REPLACE
            else value[:0]
        )
        current = value
        while True:
            result = current
            for seq in self.disallowed:
                result = result.replace(_as(seq, value), replacement)
            if result == current:
                return result
            current = result


@dataclass(frozen=True)
class PolicySet:
    """Policies per declared field type.

    ``text`` and ``binary`` may be ``None`` (values of that type are left
    alone). ``boundary`` is the policy the request filter tests leaves with;
    only its ``disallowed`` set matters there.
    """

    boundary: BytePolicy = field(default_factory=BytePolicy)
    text: BytePolicy | None = field(default_factory=BytePolicy)
    binary: BytePolicy | None = None

    def policy_for(self, field_type: str) -> BytePolicy | None:
        if field_type == "none":
            return None
        if field_type not in FIELD_TYPES:
            raise ValueError(f"Unknown field type: {field_type!r}")
        return getattr(self, field_type)


def _policy_from(
    action: str | None,
    disallowed: tuple[str, ...],
    replacement: str,
    transform_none: bool,
) -> BytePolicy | None:
    if not action or action.strip().lower() == "none":
        return None
    return BytePolicy(
        disallowed=disallowed,
        action=PolicyAction(action.strip().lower()),
        replacement=replacement,
        transform_none=transform_none,
    )


def policies_from_config(config: Mapping[str, Any]) -> PolicySet:
    """Build the process-wide ``PolicySet`` from Flask config keys."""
    disallowed = tuple(config.get("TEXTGUARD_DISALLOWED") or (NUL,))
    replacement = config.get("TEXTGUARD_REPLACEMENT", "") or ""
    transform_none = bool(config.get("TEXTGUARD_TRANSFORM_NONE", False))
    return PolicySet(
        boundary=BytePolicy(disallowed=disallowed, action=PolicyAction.REJECT),
        text=_policy_from(
            config.get("TEXTGUARD_TEXT_ACTION", "strip"),
            disallowed,
            replacement,
            transform_none,
        ),
        binary=_policy_from(
            config.get("TEXTGUARD_BINARY_ACTION", "none"),
            disallowed,
            replacement,
            transform_none,
        ),
    )
