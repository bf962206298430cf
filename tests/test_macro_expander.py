import pytest

from adapters.macros.expander import expand_macros, normalize_macro_name, references
from errors import MacroError


def test_expand_wraps_body_in_parentheses():
    assert expand_macros("@atk * 2", {"atk": "1d20+5"}) == "(1d20+5) * 2"


def test_expand_is_case_insensitive_and_recursive():
    macros = {"atk": "1d20 + @bonus", "bonus": "3"}

    assert expand_macros("@ATK", macros) == "(1d20 + (3))"


def test_text_without_references_is_unchanged():
    assert expand_macros("2d6+3", {}) == "2d6+3"


def test_unknown_macro_is_rejected():
    with pytest.raises(MacroError, match="Unknown macro @nope"):
        expand_macros("@nope + 1", {})


def test_cycles_are_rejected_with_chain():
    with pytest.raises(MacroError) as exc:
        expand_macros("@a", {"a": "@b", "b": "@a"})

    assert "@a -> @b -> @a" in str(exc.value)


def test_deep_chains_are_rejected():
    macros = {f"m{i}": f"@m{i + 1}" for i in range(10)}
    macros["m10"] = "1"

    with pytest.raises(MacroError, match="deeper"):
        expand_macros("@m0", macros)
    assert expand_macros("@m8", macros) == "(((1)))"


def test_normalize_macro_name():
    assert normalize_macro_name("@Attack_2") == "attack_2"
    for bad in ("", "2fast", "has space", "x" * 33):
        with pytest.raises(MacroError):
            normalize_macro_name(bad)


def test_references_lists_names_in_order():
    assert references("@a + 2 * @B") == ["a", "b"]


def test_fan_out_expansion_is_bounded():
    macros = {f"m{i}": "+".join([f"@m{i + 1}"] * 10) for i in range(6)}
    macros["m6"] = "1d6"

    with pytest.raises(MacroError, match="longer than 1000"):
        expand_macros("@m0", macros, max_length=1000)


def test_expansion_within_length_limit_passes():
    assert expand_macros("@a+@a", {"a": "1d6"}, max_length=15) == "(1d6)+(1d6)"
