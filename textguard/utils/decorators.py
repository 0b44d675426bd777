from __future__ import annotations

from typing import Any, Callable

EXEMPT_ATTR = "_textguard_boundary_exempt"


def boundary_exempt(func: Callable[..., Any]) -> Callable[..., Any]:
    """Marca a view como isenta do BoundaryFilter.

    Use em endpoints que recebem dados binários ou que preferem o modo
    "sanitizar" (ValueNormalizer) ao modo "rejeitar". A view continua
    protegida no caminho de gravação pelos eventos de storage.
    """
    setattr(func, EXEMPT_ATTR, True)
    return func


def is_boundary_exempt(view: Callable[..., Any] | None) -> bool:
    return bool(view is not None and getattr(view, EXEMPT_ATTR, False))
