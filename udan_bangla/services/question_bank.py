import logging
import os
import time
from datetime import datetime, timezone
from typing import Dict, List, Sequence
from pydantic import ValidationError
from ..models import Question, question_problem
from .json_store import JsonFileStore

logger = logging.getLogger("udan_bangla")

class QuestionBank:
    """Admin-curated questions, tagged by topic, persisted as one JSON array."""

    def __init__(self, path: str) -> None:
        self.store = JsonFileStore(path, default=list)

    @classmethod
    def in_dir(cls, data_dir: str) -> "QuestionBank":
        return cls(os.path.join(data_dir, "question_bank.json"))

    def _record(self, topic_id: str, question: Question, fallback_id: str) -> dict:
        record = question.model_dump()
        record["id"] = question.id or fallback_id
        record["topic_id"] = topic_id
        record["created_at"] = datetime.now(timezone.utc).isoformat()
        return record

    def get_questions_for_topic(self, topic_id: str) -> List[Question]:
        questions: List[Question] = []
        for record in self.store.load():
            if record.get("topic_id") != topic_id:
                continue
            try:
                q = Question.model_validate(record)
            except ValidationError:
                logger.warning({"event": "bank_record_unreadable", "topic_id": topic_id, "id": record.get("id")})
                continue
            problem = question_problem(q)
            if problem:
                logger.warning({"event": "bank_record_malformed", "topic_id": topic_id, "id": q.id, "reason": problem})
                continue
            questions.append(q)
        return questions

    def add_question(self, topic_id: str, question: Question) -> Question:
        record = self._record(topic_id, question, f"q-{int(time.time() * 1000)}-0")
        self.store.update(lambda data: data.append(record))
        logger.debug({"event": "bank_question_added", "topic_id": topic_id, "id": record["id"]})
        return Question.model_validate(record)

    def bulk_add_questions(self, topic_id: str, questions: Sequence[Question]) -> int:
        stamp = int(time.time() * 1000)
        records = [self._record(topic_id, q, f"q-{stamp}-{idx}") for idx, q in enumerate(questions)]
        self.store.update(lambda data: data.extend(records))
        logger.debug({"event": "bank_bulk_added", "topic_id": topic_id, "count": len(records)})
        return len(records)

    def clear_topic(self, topic_id: str) -> int:
        def _clear(data: list) -> int:
            kept = [r for r in data if r.get("topic_id") != topic_id]
            removed = len(data) - len(kept)
            data[:] = kept
            return removed
        removed = self.store.update(_clear)
        logger.debug({"event": "bank_topic_cleared", "topic_id": topic_id, "removed": removed})
        return removed

    def total_count(self) -> int:
        return len(self.store.load())

    def count_by_topic(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for record in self.store.load():
            topic_id = record.get("topic_id", "")
            counts[topic_id] = counts.get(topic_id, 0) + 1
        return counts
