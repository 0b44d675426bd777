import pytest

from textguard.byte_policy import BytePolicy, PolicyAction
from textguard.errors import TypeMismatch
from textguard.utils.sanitization import ValueNormalizer, sanitize_input

SAMPLES = [
    "",
    "abc",
    "test\x00",
    "\x00",
    "\x00\x00a\x00b\x00",
    "Dom Casmurro",
    "Olá 世界 🌍\x00",
]


def test_cast_path_strips_nul():
    assert ValueNormalizer(BytePolicy()).normalize("test\x00") == "test"


def test_none_passes_through():
    assert ValueNormalizer(BytePolicy()).normalize(None) is None


def test_transform_none_opt_in():
    normalizer = ValueNormalizer(BytePolicy(transform_none=True))
    assert normalizer.normalize(None) == ""
    binary = ValueNormalizer(BytePolicy(transform_none=True), bytes)
    assert binary.normalize(None) == b""


@pytest.mark.parametrize("value", SAMPLES)
def test_idempotent(value):
    normalizer = ValueNormalizer(BytePolicy())
    once = normalizer.normalize(value)
    assert normalizer.normalize(once) == once
    assert "\x00" not in once


@pytest.mark.parametrize("value", ["", "abc", "linha\nnova\ttab", "世界"])
def test_clean_input_unchanged(value):
    assert ValueNormalizer(BytePolicy()).normalize(value) == value


def test_non_text_is_type_mismatch():
    normalizer = ValueNormalizer(BytePolicy())
    with pytest.raises(TypeMismatch):
        normalizer.normalize(42)
    with pytest.raises(TypeMismatch):
        normalizer.normalize(b"abc")
    # TypeMismatch é um TypeError comum para quem chama
    assert issubclass(TypeMismatch, TypeError)


def test_binary_normalizer():
    normalizer = ValueNormalizer(BytePolicy(), bytes)
    assert normalizer.normalize(b"a\x00b") == b"ab"
    assert normalizer.normalize(bytearray(b"\x00c")) == b"c"
    assert normalizer.normalize(memoryview(b"d\x00")) == b"d"
    with pytest.raises(TypeMismatch):
        normalizer.normalize("text")


def test_replace_policy():
    normalizer = ValueNormalizer(
        BytePolicy(action=PolicyAction.REPLACE, replacement=" ")
    )
    assert normalizer("a\x00b") == "a b"


def test_reject_policy_refused():
    with pytest.raises(ValueError):
        ValueNormalizer(BytePolicy(action=PolicyAction.REJECT))


def test_sanitize_input():
    assert sanitize_input("  nome\x00  ") == "  nome  "
    assert sanitize_input(None) is None
    assert sanitize_input(7) == 7
