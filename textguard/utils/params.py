from __future__ import annotations

import re
from typing import Any

from flask import Request
from werkzeug.datastructures import MultiDict

_KEY_PART = re.compile(r"\[([^\[\]]*)\]")


def _split_key(key: str) -> list[str]:
    """``search[name][]`` -> ``["search", "name", ""]``."""
    head = key.split("[", 1)[0]
    if not head or head == key:
        return [key]
    tail = key[len(head):]
    parts = _KEY_PART.findall(tail)
    # Chave malformada (ex.: "a[b"): tratar como nome plano
    if "".join(f"[{p}]" for p in parts) != tail:
        return [key]
    return [head, *parts]


def nest_params(flat: MultiDict) -> dict[str, Any]:
    """Expand bracket-notation keys into nested dicts/lists.

    ``search[name]=abc`` becomes ``{"search": {"name": "abc"}}`` and
    ``tags[]=a&tags[]=b`` becomes ``{"tags": ["a", "b"]}``. Repeated plain
    keys become lists. Nothing is ever dropped: a bracket key whose parent
    is already a plain value stays flat under its raw name, and a key that
    lands on an occupied slot turns that slot into a list holding both.
    """
    result: dict[str, Any] = {}
    for key, values in flat.lists():
        path = _split_key(key)
        as_list = len(path) > 1 and path[-1] == ""
        if as_list:
            path = path[:-1]
        value: Any = list(values) if as_list or len(values) > 1 else values[0]

        node = result
        for part in path[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                node = None
                break
            node = child
        if node is None:
            _merge(result, key, value, as_list)
        else:
            _merge(node, path[-1], value, as_list)
    return result


def _merge(node: dict[str, Any], name: str, value: Any, as_list: bool) -> None:
    if name not in node:
        node[name] = value
        return
    current = node[name]
    if as_list and isinstance(current, list):
        current.extend(value)
    else:
        # colisão de formato: mantém os dois valores
        node[name] = [current, value]


def request_parameters(request: Request) -> dict[str, Any]:
    """Collect one request's inbound fields into a single nested mapping.

    Query string and form fields use bracket notation; the JSON body and the
    URL path variables are added under their own keys. File uploads are
    binary and never included.
    """
    params: dict[str, Any] = {}
    if request.args:
        params["query"] = nest_params(request.args)
    if request.form:
        params["form"] = nest_params(request.form)
    if request.is_json:
        body = request.get_json(silent=True)
        if body is not None:
            params["json"] = body
    if request.view_args:
        params["path"] = dict(request.view_args)
    return params
