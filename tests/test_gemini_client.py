from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from udan_bangla.config import settings
from udan_bangla.errors import QuestionGenerationError
from udan_bangla.services import gemini_client
from udan_bangla.services.gemini_client import GeminiQuestionGenerator


def _items(count: int) -> list[dict]:
    return [
        {
            "questionText": f"Which river flows past site {i}?",
            "options": ["Hooghly", "Damodar", "Teesta", "Rupnarayan"],
            "correctAnswerIndex": i % 4,
            "explanation": "Geography basics.",
        }
        for i in range(count)
    ]


class FakeModel:
    response_text = ""
    prompts: list[str] = []

    def __init__(self, model_name, generation_config=None) -> None:
        self.model_name = model_name
        self.generation_config = generation_config

    def count_tokens(self, text):
        return SimpleNamespace(total_tokens=42)

    def generate_content(self, prompt):
        FakeModel.prompts.append(prompt)
        return SimpleNamespace(text=FakeModel.response_text, usage_metadata=SimpleNamespace(candidates_token_count=7))


@pytest.fixture
def generator(monkeypatch, tmp_path) -> GeminiQuestionGenerator:
    FakeModel.prompts = []
    monkeypatch.setattr(gemini_client.genai, "GenerativeModel", FakeModel)
    monkeypatch.setattr(settings, "gemini_api_key", None)
    monkeypatch.setattr(settings, "generation_log_dir", str(tmp_path / "logs"))
    gen = GeminiQuestionGenerator()
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")
    return gen


def test_generate_returns_exact_count(generator) -> None:
    FakeModel.response_text = json.dumps(_items(7))
    questions = generator.generate_questions("WB Geography", count=5)
    assert len(questions) == 5
    assert questions[1].correct_option_index == 1
    assert questions[0].options == ["Hooghly", "Damodar", "Teesta", "Rupnarayan"]
    assert all(isinstance(q.id, str) and q.id for q in questions)
    assert "WB Geography" in FakeModel.prompts[0]
    assert "West Bengal" in FakeModel.prompts[0]


def test_generate_without_api_key_fails(generator, monkeypatch) -> None:
    monkeypatch.setattr(settings, "gemini_api_key", None)
    with pytest.raises(QuestionGenerationError):
        generator.generate_questions("Physics", count=5)


def test_generate_with_too_few_questions_fails(generator) -> None:
    FakeModel.response_text = json.dumps(_items(3))
    with pytest.raises(QuestionGenerationError):
        generator.generate_questions("Physics", count=5)


def test_generate_empty_response_fails(generator) -> None:
    FakeModel.response_text = ""
    with pytest.raises(QuestionGenerationError):
        generator.generate_questions("Physics", count=5)


def test_generate_wraps_model_errors(generator, monkeypatch) -> None:
    def _boom(self, prompt):
        raise RuntimeError("503 from upstream")

    monkeypatch.setattr(FakeModel, "generate_content", _boom)
    with pytest.raises(QuestionGenerationError):
        generator.generate_questions("Physics", count=5)


def test_generate_writes_session_log(generator, tmp_path) -> None:
    FakeModel.response_text = json.dumps(_items(2))
    generator.generate_questions("Chemistry", count=2, session_id="abc")
    lines = (tmp_path / "logs" / "session_abc.jsonl").read_text(encoding="utf-8").splitlines()
    events = [json.loads(line)["event"] for line in lines]
    assert events == ["prompt", "generated"]


def test_parse_accepts_fenced_wrapped_payload(generator) -> None:
    raw = "```json\n" + json.dumps({"questions": _items(2)}) + "\n```"
    questions = generator.parse_questions(raw, 2)
    assert [q.correct_option_index for q in questions] == [0, 1]


def test_parse_slices_array_out_of_prose(generator) -> None:
    raw = "Here are your questions: " + json.dumps(_items(2)) + " Good luck!"
    assert len(generator.parse_questions(raw, 2)) == 2


def test_parse_accepts_snake_case_keys(generator) -> None:
    raw = json.dumps([{"id": 3, "text": "Capital of WB?", "options": ["Kolkata", "Siliguri", "Durgapur", "Asansol"], "correct_option_index": 0}])
    [question] = generator.parse_questions(raw, 1)
    assert question.id == "3"
    assert question.explanation == ""


def test_parse_discards_malformed_items(generator) -> None:
    items = _items(3)
    items[0]["options"] = ["only", "three", "options"]
    items[1]["correctAnswerIndex"] = 7
    with pytest.raises(QuestionGenerationError):
        generator.parse_questions(json.dumps(items), 2)
    assert len(generator.parse_questions(json.dumps(items), 1)) == 1


def test_parse_drops_duplicate_texts(generator) -> None:
    items = _items(1) * 3
    with pytest.raises(QuestionGenerationError):
        generator.parse_questions(json.dumps(items), 2)


def test_parse_rejects_garbage(generator) -> None:
    with pytest.raises(QuestionGenerationError):
        generator.parse_questions("not json at all", 1)
    with pytest.raises(QuestionGenerationError):
        generator.parse_questions(json.dumps({"answer": 42}), 1)
