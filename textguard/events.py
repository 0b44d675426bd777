from __future__ import annotations

import logging
from typing import Any

from flask import current_app, has_app_context
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapper

from textguard.storage import CodecTable

logger = logging.getLogger(__name__)


def _active_codecs() -> CodecTable | None:
    """CodecTable do app corrente (ou None fora de contexto / desligado)."""
    if not has_app_context():
        return None
    state = current_app.extensions.get("textguard")
    return getattr(state, "codecs", None)


def _on_set(target, value, oldvalue, initiator):  # noqa: ANN001
    """Cast path (write): normalize on attribute assignment."""
    codecs = _active_codecs()
    if codecs is None:
        return value
    return codecs.cast(type(target), initiator.key, value)


def _on_load(target, context):  # noqa: ANN001
    """Cast path (read): normalize committed values after a load."""
    codecs = _active_codecs()
    if codecs is not None:
        codecs.normalize_loaded(target)


def _on_refresh(target, context, attrs):  # noqa: ANN001
    _on_load(target, context)


def instrument_mapper(mapper: Mapper, codecs: CodecTable) -> None:
    """Attach the cast-path listeners to every codec-mapped attribute.

    Listeners live on the mapped class and resolve the CodecTable of the
    current app at call time, so instrumenting twice (one app per test, for
    instance) is a no-op.
    """
    model = mapper.class_
    for key in codecs.attribute_types.get(model, {}):
        attr = getattr(model, key)
        if not event.contains(attr, "set", _on_set):
            event.listen(attr, "set", _on_set, retval=True)
    if not event.contains(model, "load", _on_load):
        event.listen(model, "load", _on_load)
    if not event.contains(model, "refresh", _on_refresh):
        event.listen(model, "refresh", _on_refresh)


def install_engine(engine: Engine, codecs: CodecTable):
    """Serialize path: every statement sent through ``engine`` is normalized.

    The CodecTable is bound to this engine's listener directly; there is no
    global registry to patch. The execution context lets each bind follow
    the field type declared on its column.
    """

    def before_cursor_execute(  # noqa: ANN001
        conn, cursor, statement, parameters, context, executemany
    ) -> tuple[str, Any]:
        new_statement, new_parameters = codecs.serialize(
            statement, parameters, context, executemany
        )
        if new_statement != statement or new_parameters != parameters:
            logger.debug(
                "Disallowed bytes removed before execute (executemany=%s)",
                executemany,
            )
        return new_statement, new_parameters

    event.listen(
        engine, "before_cursor_execute", before_cursor_execute, retval=True
    )
    return before_cursor_execute
