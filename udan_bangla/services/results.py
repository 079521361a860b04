import logging
import os
import time
from typing import List, Optional
from ..models import QuizResultRecord, SubjectPerformance, UserStats
from .json_store import JsonFileStore
from .quiz_session import percentage, round_half_up

logger = logging.getLogger("udan_bangla")

RECENT_SCORES_KEPT = 5


def _empty_document() -> dict:
    return {"results": [], "user_stats": {}}


def apply_result(prev: Optional[UserStats], topic_title: str, exam: Optional[str], score: int, total: int) -> UserStats:
    """Fold one finished quiz into a learner's running statistics."""
    stats = prev.model_copy(deep=True) if prev else UserStats()
    percent = percentage(score, total)
    stats.tests_attempted += 1
    stats.average_score = round_half_up(
        (stats.average_score * (stats.tests_attempted - 1) + percent) / stats.tests_attempted
    )
    stats.recent_scores = (stats.recent_scores + [percent])[-RECENT_SCORES_KEPT:]
    if exam:
        stats.target_exam = exam
    subject = next((s for s in stats.subject_wise if s.subject == topic_title), None)
    if subject is None:
        stats.subject_wise.append(SubjectPerformance(subject=topic_title, accuracy=percent, total_questions=total))
    else:
        combined = subject.total_questions + total
        if combined:
            subject.accuracy = round_half_up(
                (subject.accuracy * subject.total_questions + percent * total) / combined
            )
        subject.total_questions = combined
    return stats


class ScoreReporter:
    """Receives the final score of one learner's session on one topic."""

    def __init__(self, store: "ResultStore", user_id: str, topic_id: str, topic_title: str, exam: Optional[str]) -> None:
        self.store = store
        self.user_id = user_id
        self.topic_id = topic_id
        self.topic_title = topic_title
        self.exam = exam

    def report_result(self, score: int, total: int) -> None:
        self.store.record_result(
            user_id=self.user_id,
            topic_id=self.topic_id,
            topic_title=self.topic_title,
            exam=self.exam,
            score=score,
            total=total,
        )


class ResultStore:
    def __init__(self, path: str) -> None:
        self.store = JsonFileStore(path, default=_empty_document)

    @classmethod
    def in_dir(cls, data_dir: str) -> "ResultStore":
        return cls(os.path.join(data_dir, "results.json"))

    def reporter_for(self, user_id: str, topic_id: str, topic_title: str, exam: Optional[str]) -> ScoreReporter:
        return ScoreReporter(self, user_id, topic_id, topic_title, exam)

    def record_result(self, *, user_id: str, topic_id: str, topic_title: str, exam: Optional[str], score: int, total: int) -> QuizResultRecord:
        record = QuizResultRecord(
            user_id=user_id,
            topic_id=topic_id,
            topic_title=topic_title,
            exam=exam,
            score=score,
            total_questions=total,
            percentage=(score / total * 100) if total > 0 else 0,
            finished_at=time.time(),
        )

        def _apply(doc: dict) -> UserStats:
            doc["results"].append(record.model_dump())
            raw = doc["user_stats"].get(user_id)
            prev = UserStats.model_validate(raw) if raw else None
            stats = apply_result(prev, topic_title, exam, score, total)
            doc["user_stats"][user_id] = stats.model_dump()
            return stats

        stats = self.store.update(_apply)
        logger.debug({
            "event": "result_recorded",
            "user_id": user_id,
            "topic_id": topic_id,
            "score": score,
            "total": total,
            "tests_attempted": stats.tests_attempted,
        })
        return record

    def get_user_stats(self, user_id: str) -> Optional[UserStats]:
        raw = self.store.load()["user_stats"].get(user_id)
        return UserStats.model_validate(raw) if raw else None

    def results_for(self, user_id: str) -> List[QuizResultRecord]:
        return [QuizResultRecord.model_validate(r) for r in self.store.load()["results"] if r.get("user_id") == user_id]

    def total_users(self) -> int:
        return len(self.store.load()["user_stats"])

    def active_sessions_count(self, window_minutes: int = 10, now: Optional[float] = None) -> int:
        cutoff = (now if now is not None else time.time()) - window_minutes * 60
        return sum(1 for r in self.store.load()["results"] if r.get("finished_at", 0) >= cutoff)

    def set_subscription(self, user_id: str, plan: str) -> UserStats:
        def _apply(doc: dict) -> UserStats:
            raw = doc["user_stats"].get(user_id)
            stats = UserStats.model_validate(raw) if raw else UserStats()
            stats.subscription_plan = plan
            doc["user_stats"][user_id] = stats.model_dump()
            return stats

        stats = self.store.update(_apply)
        logger.info({"event": "subscription_updated", "user_id": user_id, "plan": plan})
        return stats
