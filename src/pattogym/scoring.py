from typing import Dict, TypeVar

from .models import EnglishOption, JapaneseOption

OptionT = TypeVar("OptionT", JapaneseOption, EnglishOption)


def round_burn(
    japanese_score: int, english_score: int, remaining: int, speed_multiplier: int
) -> int:
    """BCal for one set: intent accuracy plus a bonus for time left in step 2."""
    intent_accuracy = japanese_score * english_score
    speed_bonus = remaining * speed_multiplier
    return max(intent_accuracy + speed_bonus, 0)


def brain_fat_reduction(total_bcal: int, divisor: int) -> float:
    return total_bcal / divisor


def reduce_brain_fat(current: float, reduction: float) -> float:
    return max(current - reduction, 0.0)


def best_option(options: Dict[str, OptionT]) -> OptionT:
    """Highest scoring option; the first one listed wins a tie."""
    best = None
    for option in options.values():
        if best is None or option.score > best.score:
            best = option
    if best is None:
        raise ValueError("Question has no options")
    return best
