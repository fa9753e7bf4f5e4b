import pytest

from pattogym.models import EnglishOption, JapaneseOption
from pattogym.scoring import best_option, brain_fat_reduction, reduce_brain_fat, round_burn


def test_round_burn_example():
    assert round_burn(4, 5, 8, 2) == 36


def test_round_burn_without_time_left():
    assert round_burn(3, 2, 0, 2) == 6


def test_round_burn_never_negative():
    assert round_burn(-3, 5, 0, 2) == 0


def test_brain_fat_reduction_uses_divisor():
    assert brain_fat_reduction(250, 1000) == pytest.approx(0.25)


def test_brain_fat_floors_at_zero():
    assert reduce_brain_fat(35.0, 0.5) == pytest.approx(34.5)
    assert reduce_brain_fat(0.2, 1.0) == 0.0


def test_best_option_prefers_highest_score():
    options = {
        "a": JapaneseOption(text="low", score=1),
        "b": JapaneseOption(text="high", score=5),
        "c": JapaneseOption(text="also high", score=5),
    }
    assert best_option(options).text == "high"


def test_best_option_on_english_keeps_feedback():
    options = {"a": EnglishOption(text="Hi", score=2, feedback="casual")}
    assert best_option(options).feedback == "casual"


def test_best_option_requires_options():
    with pytest.raises(ValueError):
        best_option({})
