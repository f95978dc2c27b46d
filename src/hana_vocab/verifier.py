"""Answer checking for each question kind."""
import re

from hana_vocab.handwriting import DEFAULT_POINTS, calculate_similarity, normalize_and_resample
from hana_vocab.models import Point, QuizQuestion

_WHITESPACE = re.compile(r"\s+")

TEMPLATE_THRESHOLD = 0.8


def check_choice(question: QuizQuestion, option: str, language: str) -> bool:
    return option == question.target.localized_meaning(language)


def check_dictation(question: QuizQuestion, text: str) -> bool:
    """Exact match after trimming; no other normalization."""
    return text.strip() == question.answer


def strip_whitespace(text: str) -> str:
    return _WHITESPACE.sub("", text or "")


def check_handwriting(question: QuizQuestion, recognized: str) -> bool:
    """Compare recognizer output to the answer ignoring all whitespace.

    An empty recognition never matches.
    """
    target = strip_whitespace(question.answer)
    return bool(target) and strip_whitespace(recognized) == target


def template_score(strokes: list[list[Point]], template: list[Point], n_points: int = DEFAULT_POINTS) -> float:
    """Similarity of drawn strokes to a normalized reference point sequence."""
    return calculate_similarity(normalize_and_resample(strokes, n_points), template)


def matches_template(
    strokes: list[list[Point]],
    template: list[Point],
    threshold: float = TEMPLATE_THRESHOLD,
) -> bool:
    """Offline handwriting check that needs no recognizer."""
    return template_score(strokes, template) >= threshold
