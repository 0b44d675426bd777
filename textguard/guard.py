from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flask import Flask, Response, current_app, request

from textguard.byte_policy import PolicySet, policies_from_config
from textguard.errors import PolicyViolation
from textguard.events import install_engine, instrument_mapper
from textguard.storage import CodecTable
from textguard.utils.boundary_filter import REJECT_BODY, BoundaryFilter
from textguard.utils.decorators import is_boundary_exempt
from textguard.utils.params import request_parameters


@dataclass(frozen=True)
class GuardState:
    policies: PolicySet
    boundary: BoundaryFilter | None
    codecs: CodecTable | None


def _check_request() -> None:
    state: GuardState = current_app.extensions["textguard"]
    if state.boundary is None:
        return None
    view = (
        current_app.view_functions.get(request.endpoint)
        if request.endpoint
        else None
    )
    if is_boundary_exempt(view):
        return None
    state.boundary.enforce(request_parameters(request))
    return None


def _policy_violation_response(error: PolicyViolation) -> Response:
    # Nunca logar o valor em si, apenas onde ele estava
    current_app.logger.warning(
        "Requisição rejeitada %s %s: %s",
        request.method,
        request.path,
        error.reason,
    )
    return Response(REJECT_BODY, status=error.status, mimetype="text/plain")


class TextGuard:
    """Flask extension wiring the boundary filter and the value normalizer.

    Both layers are independent; ``TEXTGUARD_BOUNDARY_ENABLED`` and
    ``TEXTGUARD_NORMALIZER_ENABLED`` switch each one off.
    """

    def __init__(self, app: Flask | None = None, db: Any = None) -> None:
        if app is not None:
            self.init_app(app, db)

    def init_app(self, app: Flask, db: Any) -> None:
        policies = policies_from_config(app.config)

        boundary = None
        if app.config.get("TEXTGUARD_BOUNDARY_ENABLED", True):
            boundary = BoundaryFilter(
                policies.boundary,
                max_depth=app.config.get("TEXTGUARD_MAX_DEPTH", 32),
                max_nodes=app.config.get("TEXTGUARD_MAX_NODES", 10_000),
                status=app.config.get("TEXTGUARD_REJECT_STATUS", 422),
            )
            app.before_request(_check_request)
        app.register_error_handler(PolicyViolation, _policy_violation_response)

        codecs = None
        if app.config.get("TEXTGUARD_NORMALIZER_ENABLED", True):
            # Tabela explícita derivada dos metadados (modelos já importados)
            mappers = list(db.Model.registry.mappers)
            codecs = CodecTable.build(policies, db.metadata, mappers)
            with app.app_context():
                for engine in db.engines.values():
                    install_engine(engine, codecs)
            for mapper in mappers:
                instrument_mapper(mapper, codecs)

        app.extensions["textguard"] = GuardState(
            policies=policies, boundary=boundary, codecs=codecs
        )

    @property
    def state(self) -> GuardState:
        return current_app.extensions["textguard"]

    @property
    def codecs(self) -> CodecTable | None:
        return self.state.codecs
