from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence
from ..errors import (
    AlreadyAnswered,
    InvalidOptionIndex,
    InvalidQuestionSet,
    InvalidState,
    NoSelection,
    NotYetAnswered,
)
from ..models import Question, question_problem


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class FinalResult(NamedTuple):
    score: int
    total: int


class QuizSession:
    """One learner's attempt at a fixed, ordered sequence of questions.

    The session moves NOT_STARTED -> IN_PROGRESS -> COMPLETED and never back.
    ``submit_answer`` is the only operation that changes ``score``; every other
    transition is guarded so a misbehaving caller gets an error instead of a
    corrupted score.
    """

    def __init__(self, questions: Sequence[Question]) -> None:
        if not questions:
            raise InvalidQuestionSet("a session needs at least one question")
        for q in questions:
            problem = question_problem(q)
            if problem:
                raise InvalidQuestionSet(f"question {q.id!r} rejected: {problem}")
        self.questions: tuple[Question, ...] = tuple(questions)
        self.status = SessionStatus.NOT_STARTED
        self.current_index = 0
        self.selected_option_index: Optional[int] = None
        self.answered_current = False
        self.score = 0
        # question index -> option index locked in by submit_answer
        self.answers: Dict[int, int] = {}

    @classmethod
    def begin(cls, questions: Sequence[Question]) -> "QuizSession":
        session = cls(questions)
        session.start()
        return session

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    def start(self) -> None:
        if self.status is not SessionStatus.NOT_STARTED:
            raise InvalidState(f"cannot start a session that is {self.status.value}")
        self.status = SessionStatus.IN_PROGRESS

    def _require_in_progress(self, operation: str) -> None:
        if self.status is not SessionStatus.IN_PROGRESS:
            raise InvalidState(f"{operation} not allowed while session is {self.status.value}")

    def _is_locked(self) -> bool:
        return self.answered_current or self.current_index in self.answers

    def select_option(self, index: int) -> None:
        self._require_in_progress("select_option")
        if self._is_locked():
            raise AlreadyAnswered(f"question {self.current_index} is already answered")
        if not 0 <= index < len(self.current_question.options):
            raise InvalidOptionIndex(f"option index {index} out of range")
        self.selected_option_index = index

    def submit_answer(self) -> bool:
        """Lock in the current selection; returns whether it was correct."""
        self._require_in_progress("submit_answer")
        if self._is_locked():
            raise AlreadyAnswered(f"question {self.current_index} is already answered")
        if self.selected_option_index is None:
            raise NoSelection("select an option before submitting")
        correct = self.selected_option_index == self.current_question.correct_option_index
        self.answers[self.current_index] = self.selected_option_index
        self.answered_current = True
        if correct:
            self.score += 1
        return correct

    def advance(self) -> SessionStatus:
        self._require_in_progress("advance")
        if self.current_index not in self.answers:
            raise NotYetAnswered(f"question {self.current_index} has not been answered")
        if self.current_index < self.total - 1:
            self.current_index += 1
            self.selected_option_index = None
            self.answered_current = False
        else:
            self.status = SessionStatus.COMPLETED
        return self.status

    def final_result(self) -> FinalResult:
        if self.status is not SessionStatus.COMPLETED:
            raise InvalidState("final result is only available once the session is completed")
        return FinalResult(score=self.score, total=self.total)

    def correct_flags(self) -> List[bool]:
        return [
            self.answers.get(i) == q.correct_option_index
            for i, q in enumerate(self.questions)
        ]


def round_half_up(value: float) -> int:
    return int(value + 0.5)


def percentage(score: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(score * 100 / total)


def result_message(percent: int) -> str:
    if percent >= 80:
        return "Excellent Work!"
    if percent >= 60:
        return "Good Job!"
    return "Keep Practicing!"
