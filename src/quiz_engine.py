"""
Practice quiz engine: progression, answer reveal and scoring for one topic.

QuizAttempt is an immutable snapshot; QuizEngine transitions take an attempt and
return a new one, so the Streamlit view only stores the latest attempt in
session_state and the rules can be tested without a UI.

Flow per question: select_option -> submit (reveals the answer) -> advance.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence

from src.errors import NotFoundError, ValidationError
from src.formatting import round_half_up
from src.models import Question

logger = logging.getLogger(__name__)


class QuizStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class QuizAttempt:
    current_index: int = 0
    selected_index: Optional[int] = None
    revealed: bool = False
    answered_indices: FrozenSet[int] = field(default_factory=frozenset)
    score: int = 0

    @property
    def answered_count(self) -> int:
        return len(self.answered_indices)


class QuizEngine:
    """Rules for one pass through an ordered question list."""

    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise NotFoundError("No practice questions for this topic")
        self.questions: List[Question] = list(questions)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def start(self) -> QuizAttempt:
        return QuizAttempt()

    def reset(self) -> QuizAttempt:
        """Fresh attempt from any state."""
        return QuizAttempt()

    # ---- read helpers ----

    def is_complete(self, attempt: QuizAttempt) -> bool:
        return attempt.answered_count == self.total_questions

    def status(self, attempt: QuizAttempt) -> QuizStatus:
        return QuizStatus.COMPLETE if self.is_complete(attempt) else QuizStatus.IN_PROGRESS

    def current_question(self, attempt: QuizAttempt) -> Question:
        return self.questions[attempt.current_index]

    def is_last(self, attempt: QuizAttempt) -> bool:
        return attempt.current_index == self.total_questions - 1

    def progress(self, attempt: QuizAttempt) -> float:
        """Fraction for the progress bar: (current + 1) / total."""
        return (attempt.current_index + 1) / self.total_questions

    def is_correct_selection(self, attempt: QuizAttempt) -> bool:
        question = self.current_question(attempt)
        return attempt.selected_index == question.correct_option_index

    def percentage(self, attempt: QuizAttempt) -> int:
        return round_half_up(attempt.score / self.total_questions * 100)

    # ---- transitions ----

    def select_option(self, attempt: QuizAttempt, option_index: int) -> QuizAttempt:
        """Pick an option. Ignored once the answer is revealed or the quiz is complete."""
        if attempt.revealed or self.is_complete(attempt):
            return attempt
        n_options = len(self.current_question(attempt).options)
        if not 0 <= option_index < n_options:
            raise ValidationError(f"Option {option_index} out of range (0..{n_options - 1})")
        return replace(attempt, selected_index=option_index)

    def submit(self, attempt: QuizAttempt) -> QuizAttempt:
        """
        Score the selected option and reveal the answer.

        A second submit before advance() is a no-op, so the score is never counted twice.
        Raises ValidationError when nothing is selected.
        """
        if attempt.revealed:
            return attempt
        if attempt.selected_index is None:
            raise ValidationError("Select an option before submitting")
        correct = self.is_correct_selection(attempt)
        updated = replace(
            attempt,
            score=attempt.score + (1 if correct else 0),
            answered_indices=attempt.answered_indices | {attempt.current_index},
            revealed=True,
        )
        if self.is_complete(updated):
            logger.info("Quiz complete: %d/%d", updated.score, self.total_questions)
        return updated

    def advance(self, attempt: QuizAttempt) -> QuizAttempt:
        """Move to the next question. On the last question the attempt stays put (Complete)."""
        if not attempt.revealed:
            raise ValidationError("Submit an answer before moving on")
        if self.is_last(attempt):
            return attempt
        return replace(
            attempt,
            current_index=attempt.current_index + 1,
            selected_index=None,
            revealed=False,
        )
