"""Request-perimeter gate for disallowed byte sequences.

The filter never sanitizes: it either lets the request through untouched or
rejects all of it. Traversal uses an explicit stack bounded by depth and
node count because the client controls how deeply the input nests.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from textguard.byte_policy import BytePolicy
from textguard.errors import PolicyViolation

REJECT_BODY = "Bad Request"


@dataclass(frozen=True)
class BoundaryDecision:
    allowed: bool
    status: int | None = None
    body: str | None = None
    reason: str | None = None
    path: tuple = ()

    @classmethod
    def passed(cls) -> "BoundaryDecision":
        return cls(allowed=True)


def format_path(path: tuple) -> str:
    if not path:
        return "<root>"
    return ".".join(str(p) for p in path)


class BoundaryFilter:
    def __init__(
        self,
        policy: BytePolicy,
        max_depth: int = 32,
        max_nodes: int = 10_000,
        status: int = 422,
    ) -> None:
        if max_depth < 1 or max_nodes < 1:
            raise ValueError("max_depth and max_nodes must be positive.")
        self.policy = policy
        self.max_depth = max_depth
        self.max_nodes = max_nodes
        self.status = status

    def _reject(self, reason: str, path: tuple) -> BoundaryDecision:
        return BoundaryDecision(
            allowed=False,
            status=self.status,
            body=REJECT_BODY,
            reason=reason,
            path=path,
        )

    def allow(self, params: Any) -> BoundaryDecision:
        """Inspect every str leaf of ``params``; reject on the first match.

        Numbers, booleans, ``None`` and bytes are not inspected. Containers
        already seen (shared or cyclic references) are skipped.
        """
        stack: list[tuple[Any, tuple]] = [(params, ())]
        seen: set[int] = set()
        nodes = 0
        while stack:
            value, path = stack.pop()
            nodes += 1
            if nodes > self.max_nodes:
                return self._reject(
                    f"more than {self.max_nodes} values in request", path
                )
            if isinstance(value, str):
                if self.policy.contains(value):
                    return self._reject(
                        "disallowed byte sequence in "
                        f"'{format_path(path)}'",
                        path,
                    )
                continue
            if isinstance(value, Mapping):
                children = [(v, path + (k,)) for k, v in value.items()]
            elif isinstance(value, (list, tuple)):
                children = [(v, path + (i,)) for i, v in enumerate(value)]
            else:
                continue
            if id(value) in seen:
                continue
            seen.add(id(value))
            if children and len(path) >= self.max_depth:
                return self._reject(
                    f"nesting deeper than {self.max_depth} levels", path
                )
            # ordem reversa: o primeiro filho é visitado primeiro
            stack.extend(reversed(children))
        return BoundaryDecision.passed()

    def enforce(self, params: Any) -> None:
        """Like ``allow`` but raises ``PolicyViolation`` on rejection."""
        decision = self.allow(params)
        if not decision.allowed:
            raise PolicyViolation(
                decision.reason or REJECT_BODY,
                status=decision.status or self.status,
                path=decision.path,
            )
