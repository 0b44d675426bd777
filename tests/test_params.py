from werkzeug.datastructures import MultiDict

from textguard.utils.params import nest_params, request_parameters


def test_bracket_keys_nest():
    flat = MultiDict([("search[name]", "abc"), ("search[year]", "1899")])
    assert nest_params(flat) == {"search": {"name": "abc", "year": "1899"}}


def test_deep_brackets():
    flat = MultiDict([("a[b][c]", "x")])
    assert nest_params(flat) == {"a": {"b": {"c": "x"}}}


def test_list_brackets_and_repeated_keys():
    flat = MultiDict(
        [("tags[]", "a"), ("tags[]", "b"), ("q", "1"), ("q", "2")]
    )
    assert nest_params(flat) == {"tags": ["a", "b"], "q": ["1", "2"]}


def test_malformed_key_stays_flat():
    assert nest_params(MultiDict([("a[b", "x")])) == {"a[b": "x"}


def test_shape_collision_keeps_raw_key():
    flat = MultiDict([("a", "x"), ("a[b]", "y")])
    assert nest_params(flat) == {"a": "x", "a[b]": "y"}


def test_plain_key_after_nested_keeps_both():
    flat = MultiDict([("a[b]", "\x00"), ("a", "ok")])
    assert nest_params(flat) == {"a": [{"b": "\x00"}, "ok"]}


def test_list_key_after_plain_keeps_both():
    flat = MultiDict([("tags", "x"), ("tags[]", "a"), ("tags[]", "b")])
    assert nest_params(flat) == {"tags": ["x", ["a", "b"]]}


def test_request_parameters_collects_all_sources(app):
    with app.test_request_context(
        "/book?search[name]=abc",
        method="POST",
        json={"name": "livro", "tags": ["x"]},
    ):
        from flask import request

        params = request_parameters(request)
    assert params["query"] == {"search": {"name": "abc"}}
    assert params["json"] == {"name": "livro", "tags": ["x"]}
    assert "form" not in params


def test_request_parameters_form(app):
    with app.test_request_context(
        "/books", method="POST", data={"name": "livro\x00"}
    ):
        from flask import request

        params = request_parameters(request)
    assert params == {"form": {"name": "livro\x00"}}
