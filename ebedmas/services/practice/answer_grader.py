# ============================================================================
# Answer Grading
# ============================================================================
"""
Rule-based answer grading keyed on question type.

- text / click: trimmed, case-insensitive equality
- drag: comma-separated tokens, trimmed and lowercased, sorted independently
  on both sides and compared element-wise
- draw / paint: marked manually, never auto-graded

Stored correct answers are parsed into an AnswerKey variant when an admin
writes the question, so malformed keys are rejected up front instead of at
grading time.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union
import logging

from ebedmas.core.exceptions import InvalidAnswerKey, InvalidQuestionState, MissingAnswer
from ebedmas.models.curriculum import QuestionType

logger = logging.getLogger(__name__)


# ============================================================================
# Normalization
# ============================================================================
def normalize(value: str) -> str:
    return value.strip().lower()


def split_tokens(value: str) -> List[str]:
    """Split a comma-joined drag answer into normalized tokens"""
    return [token.strip() for token in value.lower().split(",")]


# ============================================================================
# Answer Keys
# ============================================================================
@dataclass(frozen=True)
class TextAnswerKey:
    value: str

    def matches(self, submitted: str) -> bool:
        return normalize(submitted) == normalize(self.value)


@dataclass(frozen=True)
class ClickAnswerKey:
    value: str

    def matches(self, submitted: str) -> bool:
        return normalize(submitted) == normalize(self.value)


@dataclass(frozen=True)
class DragAnswerKey:
    tokens: Tuple[str, ...]

    def matches(self, submitted: str) -> bool:
        # Sorted sequences, not sets: duplicate tokens must appear equally often
        return sorted(split_tokens(submitted)) == sorted(self.tokens)


@dataclass(frozen=True)
class ManualAnswerKey:
    """draw / paint questions carry a reference answer that a teacher marks"""
    reference: Optional[str] = None

    def matches(self, submitted: str) -> Optional[bool]:
        return None


AnswerKey = Union[TextAnswerKey, ClickAnswerKey, DragAnswerKey, ManualAnswerKey]

MANUAL_TYPES = frozenset({QuestionType.DRAW, QuestionType.PAINT})


def parse_answer_key(
    question_type: Union[QuestionType, str],
    correct_answer: Optional[str],
    options: Optional[Sequence[str]] = None,
) -> AnswerKey:
    """
    Validate a stored correct answer against its question type.

    Raises:
        InvalidAnswerKey: if the answer does not fit the type's shape
    """
    try:
        question_type = QuestionType(question_type)
    except ValueError:
        raise InvalidAnswerKey(f"Unknown question type '{question_type}'")

    if question_type in MANUAL_TYPES:
        return ManualAnswerKey(reference=correct_answer)

    if correct_answer is None or not correct_answer.strip():
        raise InvalidAnswerKey(f"A {question_type.value} question needs a correct answer")

    if question_type == QuestionType.TEXT:
        return TextAnswerKey(value=correct_answer)

    if question_type == QuestionType.CLICK:
        if options:
            choices = {normalize(str(option)) for option in options}
            if normalize(correct_answer) not in choices:
                raise InvalidAnswerKey("The correct answer of a click question must be one of its options")
        return ClickAnswerKey(value=correct_answer)

    tokens = tuple(split_tokens(correct_answer))
    if "" in tokens:
        raise InvalidAnswerKey("A drag answer must be a comma-separated list of non-empty items")
    return DragAnswerKey(tokens=tokens)


# ============================================================================
# Grading
# ============================================================================
def grade_answer(
    question_type: Union[QuestionType, str],
    correct_answer_raw: Optional[str],
    submitted_answer: Optional[str],
    question_id=None,
) -> Optional[bool]:
    """
    Decide whether a submitted answer matches the stored correct answer.

    Returns:
        True/False for auto-gradable types, None for draw/paint.

    Raises:
        InvalidQuestionState: the stored correct answer is missing or malformed
        MissingAnswer: no answer was submitted
    """
    if correct_answer_raw is None:
        raise InvalidQuestionState(question_id)
    if submitted_answer is None:
        raise MissingAnswer()

    try:
        key = parse_answer_key(question_type, correct_answer_raw)
    except InvalidAnswerKey as e:
        logger.error(f"Stored answer key for question {question_id} is malformed: {e.detail}")
        raise InvalidQuestionState(question_id, e.detail)

    return key.matches(submitted_answer)
