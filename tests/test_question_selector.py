from __future__ import annotations

import random
from collections import Counter

import pytest

from conftest import FakeGenerator, make_question
from udan_bangla.errors import InvalidQuestionSet, QuestionGenerationError
from udan_bangla.models import Question
from udan_bangla.services.question_selector import sample_questions, select_questions


class ListSource:
    def __init__(self, questions: list[Question]) -> None:
        self.questions = questions
        self.topics: list[str] = []

    def get_questions_for_topic(self, topic_id: str) -> list[Question]:
        self.topics.append(topic_id)
        return list(self.questions)


def _pool(size: int) -> list[Question]:
    return [make_question(f"b{i}", correct=i % 4) for i in range(size)]


def test_large_bank_yields_exactly_count_distinct_questions() -> None:
    source = ListSource(_pool(12))
    generator = FakeGenerator()
    chosen = select_questions("polity", source, generator, prompt_context="Indian Polity", count=5, rng=random.Random(7))
    assert len(chosen) == 5
    assert len({q.id for q in chosen}) == 5
    assert source.topics == ["polity"]
    assert generator.calls == []


def test_small_bank_yields_whole_pool() -> None:
    pool = _pool(3)
    chosen = select_questions("polity", ListSource(pool), FakeGenerator(), prompt_context="x", count=5, rng=random.Random(1))
    assert sorted(q.id for q in chosen) == sorted(q.id for q in pool)


def test_empty_bank_falls_back_to_generator() -> None:
    generated = [make_question(f"g{i}") for i in range(5)]
    generator = FakeGenerator(generated)
    chosen = select_questions("wb-geo", ListSource([]), generator, prompt_context="WB Geography for Class 11 (West Bengal Board)", count=5)
    assert [q.id for q in chosen] == [q.id for q in generated]
    assert generator.calls == [("WB Geography for Class 11 (West Bengal Board)", 5)]


def test_malformed_bank_questions_are_skipped() -> None:
    broken = Question(id="broken", text="?", options=["a", "b"], correct_option_index=0)
    chosen = select_questions("math", ListSource([broken, make_question("fine")]), FakeGenerator(), prompt_context="x", count=5)
    assert [q.id for q in chosen] == ["fine"]


def test_bank_with_only_malformed_questions_uses_generator() -> None:
    broken = Question(id="broken", text="", options=["a", "b", "c", "d"], correct_option_index=0)
    generator = FakeGenerator([make_question(f"g{i}") for i in range(2)])
    chosen = select_questions("math", ListSource([broken]), generator, prompt_context="x", count=2)
    assert len(chosen) == 2
    assert len(generator.calls) == 1


def test_generator_short_count_is_invalid_question_set() -> None:
    generator = FakeGenerator([make_question("g0"), make_question("g1")])
    with pytest.raises(InvalidQuestionSet):
        select_questions("math", ListSource([]), generator, prompt_context="x", count=5)


def test_generator_malformed_item_is_invalid_question_set() -> None:
    bad = Question(id="g1", text="?", options=["a", "b", "c", "d"], correct_option_index=9)
    generator = FakeGenerator([make_question("g0"), bad])
    with pytest.raises(InvalidQuestionSet):
        select_questions("math", ListSource([]), generator, prompt_context="x", count=2)


def test_generator_failure_is_wrapped() -> None:
    generator = FakeGenerator(error=RuntimeError("quota exceeded"))
    with pytest.raises(QuestionGenerationError):
        select_questions("math", ListSource([]), generator, prompt_context="x", count=5)


def test_generation_error_passes_through_unchanged() -> None:
    raised = QuestionGenerationError("gemini_api_key_missing")
    generator = FakeGenerator(error=raised)
    with pytest.raises(QuestionGenerationError) as excinfo:
        select_questions("math", ListSource([]), generator, prompt_context="x", count=5)
    assert excinfo.value is raised


def test_non_positive_count_is_rejected() -> None:
    with pytest.raises(InvalidQuestionSet):
        select_questions("math", ListSource(_pool(3)), FakeGenerator(), prompt_context="x", count=0)


def test_sample_does_not_reorder_the_caller_pool() -> None:
    pool = _pool(6)
    ids = [q.id for q in pool]
    sample_questions(pool, 3, random.Random(3))
    assert [q.id for q in pool] == ids


def test_sample_keeps_option_order() -> None:
    pool = _pool(6)
    for q in sample_questions(pool, 6, random.Random(5)):
        assert q.options == ["A", "B", "C", "D"]


def test_inclusion_frequency_is_uniform() -> None:
    pool = _pool(10)
    rng = random.Random(2024)
    trials = 4000
    counts: Counter[str] = Counter()
    for _ in range(trials):
        counts.update(q.id for q in sample_questions(pool, 5, rng))
    for q in pool:
        assert abs(counts[q.id] / trials - 0.5) < 0.05


def test_first_position_is_uniform() -> None:
    pool = _pool(4)
    rng = random.Random(99)
    trials = 4000
    firsts = Counter(sample_questions(pool, 4, rng)[0].id for _ in range(trials))
    for q in pool:
        assert abs(firsts[q.id] / trials - 0.25) < 0.04
