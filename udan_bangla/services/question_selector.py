import logging
import random
from typing import List, Optional, Protocol, Sequence
from ..errors import InvalidQuestionSet, QuestionGenerationError
from ..models import Question, question_problem

logger = logging.getLogger("udan_bangla")


class QuestionSource(Protocol):
    def get_questions_for_topic(self, topic_id: str) -> List[Question]: ...


class QuestionGenerator(Protocol):
    def generate_questions(self, prompt_context: str, count: int = 5, difficulty: str = "Medium", session_id: str | None = None) -> List[Question]: ...


def sample_questions(pool: Sequence[Question], count: int, rng: Optional[random.Random] = None) -> List[Question]:
    """Uniformly permute ``pool`` and keep the first ``min(count, len(pool))`` questions."""
    shuffled = list(pool)
    (rng or random).shuffle(shuffled)
    return shuffled[:count]


def _usable(questions: Sequence[Question], origin: str, topic_id: str) -> List[Question]:
    usable: List[Question] = []
    for q in questions:
        problem = question_problem(q)
        if problem:
            logger.warning({"event": "question_discarded", "origin": origin, "topic_id": topic_id, "question_id": q.id, "reason": problem})
            continue
        usable.append(q)
    return usable


def select_questions(
    topic_id: str,
    source: QuestionSource,
    generator: QuestionGenerator,
    *,
    prompt_context: str,
    count: int = 5,
    rng: Optional[random.Random] = None,
    session_id: str | None = None,
) -> List[Question]:
    """Pick the question sequence for a new session.

    Stored questions for the topic win; when there are none, ``count`` questions
    are generated from ``prompt_context``. Returns between 1 and ``count``
    questions or raises ``InvalidQuestionSet``.
    """
    if count < 1:
        raise InvalidQuestionSet(f"question count must be positive, got {count}")
    stored = _usable(source.get_questions_for_topic(topic_id), "bank", topic_id)
    if stored:
        chosen = sample_questions(stored, count, rng)
        logger.debug({"event": "questions_from_bank", "topic_id": topic_id, "pool": len(stored), "count": len(chosen)})
        return chosen
    logger.debug({"event": "bank_empty_generating", "topic_id": topic_id, "prompt_context": prompt_context, "count": count})
    try:
        generated = generator.generate_questions(prompt_context, count=count, session_id=session_id)
    except InvalidQuestionSet:
        raise
    except Exception as exc:
        logger.exception("question_generation_failed")
        raise QuestionGenerationError(str(exc)) from exc
    usable = _usable(generated, "generated", topic_id)
    if len(usable) != count:
        raise QuestionGenerationError(f"generator returned {len(usable)} usable questions, expected {count}")
    return usable
