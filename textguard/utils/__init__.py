from .boundary_filter import BoundaryDecision, BoundaryFilter  # noqa: F401
from .decorators import boundary_exempt  # noqa: F401
from .sanitization import ValueNormalizer, sanitize_input  # noqa: F401

__all__ = [
    "BoundaryDecision",
    "BoundaryFilter",
    "ValueNormalizer",
    "boundary_exempt",
    "sanitize_input",
]
