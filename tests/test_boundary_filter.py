import pytest

from textguard.byte_policy import BytePolicy, PolicyAction
from textguard.errors import PolicyViolation
from textguard.utils.boundary_filter import BoundaryFilter


@pytest.fixture
def boundary():
    return BoundaryFilter(BytePolicy(action=PolicyAction.REJECT))


def test_nested_nul_rejected(boundary):
    decision = boundary.allow({"search": {"name": "\x00"}})
    assert decision.allowed is False
    assert decision.status == 422
    assert decision.body == "Bad Request"
    assert decision.path == ("search", "name")
    assert "search.name" in decision.reason


def test_clean_request_passes(boundary):
    params = {"search": {"name": "abc"}}
    decision = boundary.allow(params)
    assert decision.allowed is True
    assert decision.status is None
    # nunca modifica a entrada
    assert params == {"search": {"name": "abc"}}


def test_nul_inside_sequence_rejected(boundary):
    decision = boundary.allow({"a": {"b": ["ok", "bad\x00"]}})
    assert decision.allowed is False
    assert decision.path == ("a", "b", 1)


@pytest.mark.parametrize(
    "leaf", [0, 1.5, True, False, None, b"\x00binary"]
)
def test_non_text_leaves_pass(boundary, leaf):
    assert boundary.allow({"x": [leaf, {"y": leaf}]}).allowed


@pytest.mark.parametrize("params", [{}, [], (), {"a": {}}, {"a": []}, "ok"])
def test_empty_and_scalar_inputs_pass(boundary, params):
    assert boundary.allow(params).allowed


def test_scalar_root_rejected(boundary):
    assert not boundary.allow("\x00").allowed


def test_depth_bound_rejects():
    boundary = BoundaryFilter(BytePolicy(), max_depth=5)
    nested = "ok"
    for _ in range(10):
        nested = {"a": nested}
    decision = boundary.allow(nested)
    assert decision.allowed is False
    assert "nesting" in decision.reason


def test_very_deep_input_does_not_recurse():
    boundary = BoundaryFilter(BytePolicy(), max_depth=20_000, max_nodes=50_000)
    nested = ["ok"]
    for _ in range(5_000):
        nested = [nested]
    assert boundary.allow(nested).allowed
    nested = ["\x00"]
    for _ in range(5_000):
        nested = [nested]
    assert not boundary.allow(nested).allowed


def test_node_bound_rejects():
    boundary = BoundaryFilter(BytePolicy(), max_nodes=10)
    decision = boundary.allow({"items": ["ok"] * 20})
    assert decision.allowed is False
    assert "values" in decision.reason


def test_cycles_terminate(boundary):
    params = {"name": "ok"}
    params["self"] = params
    assert boundary.allow(params).allowed
    params["bad"] = ["\x00"]
    assert not boundary.allow(params).allowed


def test_shared_reference_visited_once(boundary):
    shared = ["ok"]
    assert boundary.allow({"a": shared, "b": shared}).allowed


def test_custom_sequences_and_status():
    boundary = BoundaryFilter(
        BytePolicy(disallowed=("\x1b",), action=PolicyAction.REJECT),
        status=400,
    )
    assert boundary.allow({"a": "\x00"}).allowed
    decision = boundary.allow({"a": "esc\x1b"})
    assert decision.status == 400


def test_enforce_raises(boundary):
    boundary.enforce({"ok": "yes"})
    with pytest.raises(PolicyViolation) as info:
        boundary.enforce({"q": ["\x00"]})
    assert info.value.status == 422
    assert info.value.path == ("q", 0)


def test_invalid_bounds():
    with pytest.raises(ValueError):
        BoundaryFilter(BytePolicy(), max_depth=0)
