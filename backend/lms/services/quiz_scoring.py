from dataclasses import dataclass
from typing import Sequence

MAX_SCORE = 100


@dataclass(frozen=True)
class QuizScore:
    correct_answers: int
    total_questions: int
    score: float
    max_score: int = MAX_SCORE


def _same_answer(expected, given) -> bool:
    # True == 1 in Python; a boolean never matches an option index
    return type(given) is type(expected) and given == expected


def score_quiz(answer_key: Sequence, submitted: Sequence) -> QuizScore:
    """
    Position-by-position comparison of ``submitted`` against ``answer_key``.

    No partial credit and no negative marking. A shorter submission counts
    the missing answers as wrong; answers past the end of the key are
    ignored. An answer only matches a key entry of the same type.
    ``score`` is rounded to two decimals, so a 2/3 result is 66.67. An
    empty key scores 0.
    """
    total = len(answer_key)
    if total == 0:
        return QuizScore(correct_answers=0, total_questions=0, score=0.0)

    correct = sum(1 for expected, given in zip(answer_key, submitted) if _same_answer(expected, given))
    return QuizScore(
        correct_answers=correct,
        total_questions=total,
        score=round(correct / total * MAX_SCORE, 2),
    )
