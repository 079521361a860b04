from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from udan_bangla import main as app_main
from udan_bangla.config import settings
from udan_bangla.models import Question
from udan_bangla.services.question_bank import QuestionBank
from udan_bangla.services.results import ResultStore
from udan_bangla.state import SessionStore


def make_question(qid: str, correct: int = 0, text: str | None = None) -> Question:
    return Question(
        id=qid,
        text=text or f"Question {qid}?",
        options=["A", "B", "C", "D"],
        correct_option_index=correct,
        explanation=f"Because {qid}.",
    )


class FakeGenerator:
    def __init__(self, questions: list[Question] | None = None, error: Exception | None = None) -> None:
        self.questions = questions or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def generate_questions(self, prompt_context, count=5, difficulty="Medium", session_id=None):
        self.calls.append((prompt_context, count))
        if self.error is not None:
            raise self.error
        return list(self.questions[:count])


@pytest.fixture
def bank(tmp_path) -> QuestionBank:
    return QuestionBank.in_dir(str(tmp_path))


@pytest.fixture
def results(tmp_path) -> ResultStore:
    return ResultStore.in_dir(str(tmp_path))


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator([make_question(f"gen-{i}", correct=i % 4) for i in range(5)])


@pytest.fixture
def client(monkeypatch, bank, results, fake_generator) -> Iterator[TestClient]:
    monkeypatch.setattr(app_main, "question_bank", bank)
    monkeypatch.setattr(app_main, "result_store", results)
    monkeypatch.setattr(app_main, "generator", fake_generator)
    monkeypatch.setattr(app_main, "session_store", SessionStore())
    monkeypatch.setattr(settings, "question_count", 5)
    monkeypatch.setattr(settings, "payment_delay_seconds", 0)
    with TestClient(app_main.app) as test_client:
        yield test_client
