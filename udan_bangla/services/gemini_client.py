import os
import json
import uuid
from typing import List, Dict, Any
import logging
from datetime import datetime, timezone
import google.generativeai as genai
from time import perf_counter
from ..config import settings
from ..errors import QuestionGenerationError
from ..models import Question, question_problem
from .prompt_builder import PromptBuilder

logger = logging.getLogger("udan_bangla")

class GeminiQuestionGenerator:
    def __init__(self) -> None:
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)
        self.model_name = settings.gemini_model
        self.generation_config = {
            "temperature": 0.7,
            "top_p": 0.9,
            "response_mime_type": "application/json",
        }
        self.prompt_builder = PromptBuilder()
        try:
            self.model_for_tokens = genai.GenerativeModel(self.model_name)
        except Exception:
            self.model_for_tokens = None

    def _session_log_path(self, session_id: str) -> str:
        return os.path.join(settings.generation_log_dir, f"session_{session_id}.jsonl")

    def _append_log(self, session_id: str, record: Dict[str, Any]) -> None:
        try:
            os.makedirs(settings.generation_log_dir, exist_ok=True)
            enriched = dict(record)
            enriched.setdefault("ts", datetime.now(timezone.utc).isoformat())
            with open(self._session_log_path(session_id), 'a', encoding='utf-8') as f:
                f.write(json.dumps(enriched, ensure_ascii=False) + "\n")
        except Exception:
            logger.exception("session_log_write_failed")

    def _build_prompt(self, prompt_context: str, count: int, difficulty: str) -> str:
        return self.prompt_builder.build(topic=prompt_context, difficulty=difficulty, question_count=count)

    def _strip_code_fences(self, text: str) -> str:
        t = text.strip()
        if t.startswith("```"):
            parts = t.split("\n", 1)
            if len(parts) == 2:
                t = parts[1]
            if t.endswith("```"):
                t = t[:-3]
        if t.startswith("json\n"):
            t = t[5:]
        return t.strip()

    def _coerce_payload_to_list(self, obj: Any) -> List[Dict[str, Any]]:
        if isinstance(obj, list):
            return obj
        if isinstance(obj, dict):
            if "questions" in obj and isinstance(obj["questions"], list):
                return obj["questions"]
        return []

    def _try_slice_to_array(self, text: str) -> List[Dict[str, Any]]:
        first = text.find("[")
        last = text.rfind("]")
        if first != -1 and last != -1 and last > first:
            try:
                return json.loads(text[first:last+1])
            except ValueError:
                return []
        return []

    def _count_tokens(self, text: str) -> int | None:
        if not self.model_for_tokens:
            return None
        try:
            info = self.model_for_tokens.count_tokens(text)
            return getattr(info, "total_tokens", None)
        except Exception:
            return None

    def _response_text(self, response: Any) -> str:
        try:
            raw_text = (response.text or "").strip()
        except ValueError:
            # .text raises when the candidate carries no simple text part
            raw_text = ""
        if not raw_text and getattr(response, "candidates", None):
            try:
                parts = response.candidates[0].content.parts
                raw_text = "".join(getattr(p, "text", "") for p in parts)
            except (AttributeError, IndexError):
                raw_text = ""
        return raw_text

    def parse_questions(self, raw_text: str, count: int) -> List[Question]:
        """Turn model output into exactly ``count`` well-formed questions or raise."""
        cleaned = self._strip_code_fences(raw_text)
        try:
            payload_obj = json.loads(cleaned)
        except ValueError:
            payload_obj = self._try_slice_to_array(cleaned) or None
        if payload_obj is None:
            raise QuestionGenerationError("payload_unparseable")
        payload = self._coerce_payload_to_list(payload_obj)
        if not payload:
            raise QuestionGenerationError("payload_not_list")
        questions: List[Question] = []
        seen_norm_texts: set[str] = set()
        for item in payload:
            if len(questions) == count:
                break
            if not isinstance(item, dict):
                continue
            text_val = item.get("questionText", item.get("text", ""))
            correct = item.get("correctAnswerIndex", item.get("correct_option_index"))
            options = item.get("options", [])
            if not isinstance(text_val, str) or not isinstance(correct, int) or not isinstance(options, list):
                logger.debug({"event": "generated_item_discarded", "reason": "bad_shape"})
                continue
            q = Question(
                id=str(item.get("id") or uuid.uuid4()),
                text=text_val.strip(),
                options=[str(o).strip() for o in options],
                correct_option_index=correct,
                explanation=str(item.get("explanation") or ""),
            )
            problem = question_problem(q)
            if problem:
                logger.debug({"event": "generated_item_discarded", "reason": problem})
                continue
            norm_text = q.text.lower()
            if norm_text in seen_norm_texts:
                continue
            seen_norm_texts.add(norm_text)
            questions.append(q)
        if len(questions) < count:
            raise QuestionGenerationError(f"expected {count} questions, got {len(questions)} usable")
        return questions

    def generate_questions(self, prompt_context: str, count: int = 5, difficulty: str = "Medium", session_id: str | None = None) -> List[Question]:
        if not settings.gemini_api_key:
            logger.warning({"event": "gemini_no_api_key"})
            raise QuestionGenerationError("gemini_api_key_missing")
        prompt = self._build_prompt(prompt_context, count, difficulty)
        input_tokens = self._count_tokens(prompt)
        if session_id:
            self._append_log(session_id, {"event": "prompt", "topic": prompt_context, "difficulty": difficulty, "input_tokens": input_tokens, "prompt": prompt})
        logger.debug({"event": "gemini_request", "model": self.model_name, "input_tokens": input_tokens})
        try:
            model = genai.GenerativeModel(self.model_name, generation_config=self.generation_config)
            t0 = perf_counter()
            response = model.generate_content(prompt)
            latency_ms = int((perf_counter() - t0) * 1000)
        except Exception as exc:
            logger.exception("gemini_call_failed")
            raise QuestionGenerationError("gemini_call_failed") from exc
        output_tokens = getattr(getattr(response, "usage_metadata", None), "candidates_token_count", None)
        raw_text = self._response_text(response)
        logger.debug({"event": "gemini_response", "preview": raw_text[:200], "latency_ms": latency_ms, "output_tokens": output_tokens})
        if not raw_text:
            raise QuestionGenerationError("no_data_returned")
        questions = self.parse_questions(raw_text, count)
        if session_id:
            self._append_log(session_id, {"event": "generated", "topic": prompt_context, "count": len(questions), "latency_ms": latency_ms, "output_tokens": output_tokens})
        return questions
