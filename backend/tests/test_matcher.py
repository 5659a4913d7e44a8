import pytest

from whoami.game.matcher import edit_distance, matches, matches_any, similarity


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("", "", 0),
        ("abc", "", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("same", "same", 0),
    ],
)
def test_edit_distance(a, b, expected):
    assert edit_distance(a, b) == expected
    assert edit_distance(b, a) == expected


def test_exact_match_ignores_case_and_whitespace():
    assert matches("  the ROCK ", "The Rock")


def test_typo_within_threshold_accepted():
    assert similarity("the rok", "The Rock") == pytest.approx(0.875)
    assert matches("the rok", "The Rock")


def test_unrelated_name_rejected():
    assert not matches_any("Beyonce", ["The Rock", "Dwayne Johnson"])


def test_any_alias_is_enough():
    assert matches_any("dwayne jonson", ["The Rock", "Dwayne Johnson"])


def test_both_empty_accepts():
    assert matches("   ", "")


def test_empty_guess_against_name_rejected():
    assert not matches("", "Cher")


def test_threshold_is_inclusive():
    # 1 edit over 5 chars -> similarity exactly 0.8
    assert matches("abcde", "abcdx")
    assert not matches("abcde", "abcdx", threshold=0.81)
