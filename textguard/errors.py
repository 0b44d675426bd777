from __future__ import annotations


class PolicyViolation(ValueError):
    """A request leaf matched a disallowed byte sequence.

    Raised only by the boundary filter. Terminal for the request: the
    client must resubmit without the offending bytes.
    """

    def __init__(
        self,
        reason: str,
        status: int = 422,
        path: tuple = (),
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status = status
        self.path = path


class TypeMismatch(TypeError):
    """Non-text input reached a normalizer that expects text."""
