"""Value normalization for storage-bound fields.

Every free-text value headed for a text column goes through a
``ValueNormalizer`` at two points: when it is assigned to or loaded from a
mapped attribute (cast path) and when it is handed to the DB driver (serialize
path). Both call the same ``normalize``; see ``textguard.events`` for the
wiring.
"""
from __future__ import annotations

from typing import Any

from textguard.byte_policy import BytePolicy
from textguard.errors import TypeMismatch


class ValueNormalizer:
    """Apply a transforming ``BytePolicy`` to values of one type.

    - ``None`` passes through unchanged unless the policy sets
      ``transform_none``, in which case it becomes the empty value.
    - Values of ``value_type`` are stripped/replaced; clean values come back
      unchanged and the transform is idempotent.
    - Anything else raises ``TypeMismatch``. That is a structural error, not a
      policy violation, and is never swallowed here.
    """

    def __init__(self, policy: BytePolicy, value_type: type = str) -> None:
        if not policy.transforms:
            raise ValueError(
                "ValueNormalizer needs a strip or replace policy, "
                f"got {policy.action.value!r}."
            )
        if value_type not in (str, bytes):
            raise ValueError("value_type must be str or bytes.")
        self.policy = policy
        self.value_type = value_type

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return (
            f"<ValueNormalizer {self.value_type.__name__} "
            f"{self.policy.action.value}>"
        )

    def normalize(self, value: Any) -> Any:
        if value is None:
            if self.policy.transform_none:
                return self.value_type()
            return None
        if self.value_type is bytes and isinstance(
            value, (bytearray, memoryview)
        ):
            value = bytes(value)
        if not isinstance(value, self.value_type):
            raise TypeMismatch(
                f"Expected {self.value_type.__name__}, "
                f"got {type(value).__name__}."
            )
        return self.policy.apply(value)

    __call__ = normalize


_default_normalizer = ValueNormalizer(BytePolicy())


def sanitize_input(value: Any) -> Any:
    """Return a NUL-free version of user-provided free text.

    - str: strips every NUL byte.
    - None or any non-str: returned as-is.

    Shortcut for service code that handles ad-hoc values outside mapped
    columns; mapped columns are covered by the event wiring already.
    """
    if isinstance(value, str):
        return _default_normalizer.normalize(value)
    return value
