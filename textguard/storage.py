"""Field-to-codec table derived from schema metadata.

Built once per app at ``TextGuard.init_app``: every text-like column maps to
the text normalizer and every binary column to the binary normalizer (if a
binary policy is configured). A column can declare a different field type
with ``info={"byte_policy": "text" | "binary" | "none"}``. The declaration
holds on both paths: attribute assignment/load, and bind parameters sent to
the driver, which are matched back to their column through the compiled
statement.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapper
from sqlalchemy.orm.attributes import set_committed_value

from textguard.byte_policy import PolicySet
from textguard.errors import TypeMismatch
from textguard.utils.sanitization import ValueNormalizer

_BINARY_TYPES = (bytes, bytearray, memoryview)
_VALUE_TYPES = {"text": str, "binary": _BINARY_TYPES}

# insertmanyvalues renomeia os binds de cada linha do lote: name__0, name__1
_BATCH_SUFFIX = re.compile(r"__\d+$")


def field_type_of(column: sa.Column) -> str:
    declared = column.info.get("byte_policy")
    if declared:
        return str(declared)
    col_type = column.type
    if isinstance(col_type, sa.TypeDecorator):
        col_type = col_type.impl
    # Enum herda de String, mas seus valores não são texto livre
    if isinstance(col_type, sa.Enum):
        return "none"
    if isinstance(col_type, sa.String):
        return "text"
    if isinstance(col_type, sa.LargeBinary):
        return "binary"
    return "none"


def _column_label(model: type, key: str) -> str:
    prop = sa.inspect(model).get_property(key)
    column = prop.columns[0]
    table = getattr(column, "table", None)
    if table is None:
        return f"{model.__name__}.{key}"
    return f"{table.name}.{column.name}"


class CodecTable:
    def __init__(
        self,
        policies: PolicySet,
        columns: Mapping[tuple[str, str], str],
        attributes: Mapping[type, Mapping[str, str]],
        bind_types: Iterable[tuple[sa.types.TypeEngine, str]] = (),
    ) -> None:
        self.policies = policies
        self.normalizers: dict[str, ValueNormalizer] = {}
        if policies.text is not None:
            self.normalizers["text"] = ValueNormalizer(policies.text, str)
        if policies.binary is not None:
            self.normalizers["binary"] = ValueNormalizer(
                policies.binary, bytes
            )
        self.column_types = dict(columns)
        self.attribute_types = {
            cls: dict(attrs) for cls, attrs in attributes.items()
        }
        # id(tipo da coluna) -> (tipo, field type); None quando ambíguo
        self._bind_types: dict[int, tuple[Any, str | None]] = {}
        for type_, kind in bind_types:
            known = self._bind_types.get(id(type_))
            if known is not None and known[1] != kind:
                kind = None
            self._bind_types[id(type_)] = (type_, kind)

    @classmethod
    def build(
        cls,
        policies: PolicySet,
        metadata: sa.MetaData,
        mappers: Iterable[Mapper] = (),
    ) -> "CodecTable":
        columns: dict[tuple[str, str], str] = {}
        bind_types: list[tuple[sa.types.TypeEngine, str]] = []
        for table in metadata.tables.values():
            for column in table.columns:
                kind = field_type_of(column)
                if kind != "none":
                    columns[(table.name, column.name)] = kind
                if kind != "none" or "byte_policy" in column.info:
                    bind_types.append((column.type, kind))

        attributes: dict[type, dict[str, str]] = {}
        for mapper in mappers:
            attrs: dict[str, str] = {}
            for prop in mapper.column_attrs:
                # column_property sobre expressão não tem tabela: ignorar
                kinds = {
                    columns.get((col.table.name, col.name), "none")
                    for col in prop.columns
                    if isinstance(col, sa.Column) and col.table is not None
                }
                kinds.discard("none")
                if len(kinds) == 1:
                    attrs[prop.key] = kinds.pop()
            if attrs:
                attributes[mapper.class_] = attrs
        return cls(policies, columns, attributes, bind_types)

    # ------------------------------------------------------------------
    # Cast path
    # ------------------------------------------------------------------

    def normalizer_for(self, model: type, key: str) -> ValueNormalizer | None:
        kind = self.attribute_types.get(model, {}).get(key)
        if kind is None:
            return None
        return self.normalizers.get(kind)

    def cast(self, model: type, key: str, value: Any) -> Any:
        normalizer = self.normalizer_for(model, key)
        if normalizer is None:
            return value
        try:
            return normalizer.normalize(value)
        except TypeMismatch as exc:
            raise TypeMismatch(f"{_column_label(model, key)}: {exc}") from exc

    def normalize_loaded(self, target: Any) -> None:
        """Re-normalize values just loaded from storage, without history."""
        model = type(target)
        state = target.__dict__
        for key in self.attribute_types.get(model, {}):
            if key not in state:
                continue
            normalizer = self.normalizer_for(model, key)
            if normalizer is None:
                continue
            value = state[key]
            try:
                cleaned = normalizer.normalize(value)
            except TypeMismatch as exc:
                raise TypeMismatch(
                    f"{_column_label(model, key)} loaded a "
                    f"{type(value).__name__}: {exc}"
                ) from exc
            if cleaned != value:
                set_committed_value(target, key, cleaned)

    # ------------------------------------------------------------------
    # Serialize path
    # ------------------------------------------------------------------

    def kind_of_type(self, type_: Any) -> str | None:
        entry = self._bind_types.get(id(type_))
        if entry is None or entry[0] is not type_:
            return None
        return entry[1]

    def bind_kinds(
        self, compiled: Any
    ) -> tuple[dict[str, str], list[str | None]]:
        """Field type of each bind a compiled statement sends to the driver.

        Returns the named form (keyed as the driver sees it) and the
        positional form (in ``positiontup`` order). Binds whose type is not
        a column's type (untyped ``text()`` binds, literals compared to
        non-column expressions) are left out and fall back to the
        Python-type rule.
        """
        binds = getattr(compiled, "binds", None)
        if not binds or not self._bind_types:
            return {}, []
        # IN expandido renumera os parâmetros depois da compilação
        if any(bind.expanding for bind in binds.values()):
            return {}, []

        by_name: dict[str, str] = {}
        for name, bind in binds.items():
            kind = self.kind_of_type(bind.type)
            if kind is not None:
                by_name[name] = kind
        if not by_name:
            return {}, []

        escaped = getattr(compiled, "escaped_bind_names", None) or {}
        named = {
            escaped.get(name, name): kind for name, kind in by_name.items()
        }
        positiontup = getattr(compiled, "positiontup", None) or []
        positional = [by_name.get(name) for name in positiontup]
        return named, positional

    def serialize_value(self, value: Any) -> Any:
        if isinstance(value, str):
            normalizer = self.normalizers.get("text")
            return normalizer.normalize(value) if normalizer else value
        if isinstance(value, _BINARY_TYPES):
            normalizer = self.normalizers.get("binary")
            return normalizer.normalize(value) if normalizer else value
        if isinstance(value, Mapping):
            return {k: self.serialize_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.serialize_value(v) for v in value]
        if isinstance(value, tuple):
            return tuple(self.serialize_value(v) for v in value)
        return value

    def serialize_bound(self, value: Any, kind: str | None) -> Any:
        """Normalize one bind value by its column's declared field type."""
        if kind == "none":
            return value
        if kind is None or not isinstance(value, _VALUE_TYPES[kind]):
            return self.serialize_value(value)
        normalizer = self.normalizers.get(kind)
        return normalizer.normalize(value) if normalizer else value

    def _serialize_set(
        self,
        parameters: Any,
        named: Mapping[str, str],
        positional: list[str | None],
    ) -> Any:
        if isinstance(parameters, Mapping):
            return {
                key: self.serialize_bound(
                    value,
                    named.get(key) or named.get(_BATCH_SUFFIX.sub("", key)),
                )
                for key, value in parameters.items()
            }
        if isinstance(parameters, (list, tuple)) and positional:
            width = len(positional)
            # um lote insertmanyvalues repete a linha de VALUES
            if len(parameters) % width == 0:
                kinds = positional * (len(parameters) // width)
                return type(parameters)(
                    self.serialize_bound(value, kind)
                    for value, kind in zip(parameters, kinds)
                )
        return self.serialize_value(parameters)

    def serialize(
        self,
        statement: str,
        parameters: Any,
        context: Any = None,
        executemany: bool = False,
    ) -> tuple[str, Any]:
        """Normalize a statement and its parameters on their way to the driver.

        Handles single and executemany parameter sets, positional or named.
        Raw ``text()`` fragments and literal-rendered SQL arrive here too.
        With the execution ``context`` each bind follows the field type of
        the column it targets; without it, the Python type decides.
        """
        normalizer = self.normalizers.get("text")
        if normalizer is not None:
            statement = normalizer.normalize(statement)
        named, positional = self.bind_kinds(getattr(context, "compiled", None))
        if not named:
            return statement, self.serialize_value(parameters)
        if executemany:
            return statement, [
                self._serialize_set(params, named, positional)
                for params in parameters
            ]
        return statement, self._serialize_set(parameters, named, positional)

    def normalize_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Normalize a row read through an untyped query."""
        return {
            key: self.serialize_value(value) for key, value in row.items()
        }

    def describe(self) -> list[tuple[str, str, str]]:
        """``(table.column, field_type, action)`` for every mapped column."""
        rows = []
        for (table, column), kind in sorted(self.column_types.items()):
            normalizer = self.normalizers.get(kind)
            action = normalizer.policy.action.value if normalizer else "none"
            rows.append((f"{table}.{column}", kind, action))
        return rows
