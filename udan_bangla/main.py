from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
import logging
import uuid
from time import perf_counter
from datetime import datetime
from zoneinfo import ZoneInfo
from typing import List, Optional
from .state import session_store, SessionEntry
from .models import (
	AdminStatsResponse,
	AdvanceResponse,
	CreateOrderRequest,
	CsvUploadRequest,
	CsvUploadResponse,
	NewQuestion,
	PaymentOrder,
	Question,
	QuestionView,
	QuizResultResponse,
	SelectOptionRequest,
	SessionView,
	StartQuizRequest,
	SubmitAnswerResponse,
	SubscribeRequest,
	SubscribeResponse,
	TopicDef,
	UserStats,
	VerifyPaymentRequest,
	VerifyPaymentResponse,
	question_problem,
)
from .errors import (
	CsvImportError,
	InvalidOptionIndex,
	InvalidQuestionSet,
	PaymentError,
	QuizError,
	SessionNotFound,
	UnknownTopic,
)
from .services import payments
from .services.csv_import import parse_question_csv
from .services.gemini_client import GeminiQuestionGenerator
from .services.question_bank import QuestionBank
from .services.question_selector import select_questions
from .services.quiz_session import QuizSession, SessionStatus, percentage, result_message
from .services.results import ResultStore
from .services.topics import all_topics, get_topic, prompt_context, topics_for_exam
from .config import settings

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("udan_bangla")

app = FastAPI(default_response_class=ORJSONResponse)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

generator = GeminiQuestionGenerator()
question_bank = QuestionBank.in_dir(settings.data_dir)
result_store = ResultStore.in_dir(settings.data_dir)

ERROR_STATUS = [
	(SessionNotFound, 404),
	(UnknownTopic, 404),
	(InvalidQuestionSet, 503),
	(InvalidOptionIndex, 422),
	(CsvImportError, 422),
	(PaymentError, 402),
]

def status_for(exc: QuizError) -> int:
	for error_type, status_code in ERROR_STATUS:
		if isinstance(exc, error_type):
			return status_code
	return 409

@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
	status_code = status_for(exc)
	logger.debug({"event": "quiz_error", "path": request.url.path, "code": exc.code, "status_code": status_code, "message": str(exc)})
	return ORJSONResponse(status_code=status_code, content={"detail": exc.code, "message": str(exc)})

@app.on_event("startup")
def on_startup() -> None:
	ist_time = datetime.now(ZoneInfo("Asia/Kolkata")).isoformat()
	logger.info({
		"event": "api_startup",
		"ist_time": ist_time,
		"model": settings.gemini_model,
		"question_count": settings.question_count,
		"data_dir": settings.data_dir,
	})

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
	start = perf_counter()
	response = await call_next(request)
	duration_ms = int((perf_counter() - start) * 1000)
	logger.debug({
		"event": "request_timing",
		"method": request.method,
		"path": request.url.path,
		"status_code": response.status_code,
		"duration_ms": duration_ms,
	})
	return response

def build_session_view(session_id: str, entry: SessionEntry) -> SessionView:
	session = entry.session
	q = session.current_question
	revealed = session.current_index in session.answers
	return SessionView(
		session_id=session_id,
		topic_id=entry.topic.id,
		status=session.status.value,
		current_index=session.current_index,
		total=session.total,
		score=session.score,
		selected_option_index=session.selected_option_index,
		answered_current=session.answered_current,
		question=QuestionView(
			id=q.id,
			text=q.text,
			options=list(q.options),
			correct_option_index=q.correct_option_index if revealed else None,
			explanation=q.explanation if revealed else None,
		),
	)

@app.get("/api/topics", response_model=List[TopicDef])
def list_topics(exam: Optional[str] = None):
	return topics_for_exam(exam)

@app.post("/api/quiz/start", response_model=SessionView)
def start_quiz(payload: StartQuizRequest):
	topic = get_topic(payload.topic_id)
	session_id = str(uuid.uuid4())
	gen_start = perf_counter()
	questions = select_questions(
		topic.id,
		question_bank,
		generator,
		prompt_context=prompt_context(topic, payload.exam),
		count=settings.question_count,
		session_id=session_id,
	)
	session = QuizSession.begin(questions)
	entry = session_store.create_session(session_id, session, topic, user_id=payload.user_id, exam=payload.exam)
	logger.debug({
		"event": "session_started",
		"session_id": session_id,
		"topic_id": topic.id,
		"exam": payload.exam,
		"count": session.total,
		"duration_ms": int((perf_counter() - gen_start) * 1000),
	})
	return build_session_view(session_id, entry)

@app.get("/api/quiz/{session_id}", response_model=SessionView)
def get_session(session_id: str):
	entry = session_store.get(session_id)
	with entry.lock:
		return build_session_view(session_id, entry)

@app.post("/api/quiz/{session_id}/select", response_model=SessionView)
def select_option(session_id: str, payload: SelectOptionRequest):
	entry = session_store.get(session_id)
	with entry.lock:
		entry.session.select_option(payload.option_index)
		return build_session_view(session_id, entry)

@app.post("/api/quiz/{session_id}/submit", response_model=SubmitAnswerResponse)
def submit_answer(session_id: str):
	entry = session_store.get(session_id)
	with entry.lock:
		session = entry.session
		question = session.current_question
		correct = session.submit_answer()
		score = session.score
		selected = session.selected_option_index
	logger.debug({
		"event": "submit_answer",
		"session_id": session_id,
		"question_id": question.id,
		"is_correct": correct,
		"selected_option_index": selected,
		"correct_option_index": question.correct_option_index,
		"score": score,
	})
	return SubmitAnswerResponse(
		correct=correct,
		correct_option_index=question.correct_option_index,
		explanation=question.explanation,
		score=score,
	)

@app.post("/api/quiz/{session_id}/advance", response_model=AdvanceResponse)
def advance(session_id: str):
	entry = session_store.get(session_id)
	with entry.lock:
		status = entry.session.advance()
		if status is SessionStatus.COMPLETED:
			logger.debug({"event": "session_completed", "session_id": session_id, "score": entry.session.score, "total": entry.session.total})
			return AdvanceResponse(status=status.value, completed=True)
		return AdvanceResponse(status=status.value, completed=False, session=build_session_view(session_id, entry))

@app.get("/api/quiz/{session_id}/result", response_model=QuizResultResponse)
def get_result(session_id: str):
	entry = session_store.get(session_id)
	with entry.lock:
		result = entry.session.final_result()
		report = bool(entry.user_id) and session_store.mark_reported(session_id)
	percent = percentage(result.score, result.total)
	if report:
		reporter = result_store.reporter_for(entry.user_id, entry.topic.id, entry.topic.title, entry.exam)
		try:
			reporter.report_result(result.score, result.total)
		except Exception:
			logger.exception("result_report_failed")
	return QuizResultResponse(
		session_id=session_id,
		score=result.score,
		total=result.total,
		percentage=percent,
		message=result_message(percent),
	)

@app.delete("/api/quiz/{session_id}", status_code=204)
def quit_quiz(session_id: str):
	session_store.discard(session_id)
	logger.debug({"event": "session_discarded", "session_id": session_id})
	return Response(status_code=204)

@app.get("/api/admin/topics/{topic_id}/questions", response_model=List[Question])
def list_bank_questions(topic_id: str):
	get_topic(topic_id)
	return question_bank.get_questions_for_topic(topic_id)

@app.post("/api/admin/topics/{topic_id}/questions", response_model=Question, status_code=201)
def add_bank_question(topic_id: str, payload: NewQuestion):
	get_topic(topic_id)
	question = Question(id="", **payload.model_dump())
	problem = question_problem(question)
	if problem:
		raise HTTPException(status_code=422, detail=problem)
	return question_bank.add_question(topic_id, question)

@app.post("/api/admin/topics/{topic_id}/questions/csv", response_model=CsvUploadResponse, status_code=201)
def upload_bank_csv(topic_id: str, payload: CsvUploadRequest):
	get_topic(topic_id)
	parsed = parse_question_csv(payload.csv)
	added = question_bank.bulk_add_questions(topic_id, parsed.questions)
	logger.info({"event": "csv_uploaded", "topic_id": topic_id, "added": added, "rejected_lines": parsed.rejected_lines})
	return CsvUploadResponse(added=added, rejected_lines=parsed.rejected_lines)

@app.delete("/api/admin/topics/{topic_id}/questions")
def clear_bank_topic(topic_id: str):
	get_topic(topic_id)
	return {"removed": question_bank.clear_topic(topic_id)}

@app.get("/api/admin/topics", response_model=List[TopicDef])
def list_admin_topics():
	return all_topics()

@app.get("/api/admin/stats", response_model=AdminStatsResponse)
def admin_stats():
	return AdminStatsResponse(
		total_questions=question_bank.total_count(),
		questions_by_topic=question_bank.count_by_topic(),
		total_users=result_store.total_users(),
		active_sessions=result_store.active_sessions_count(),
	)

@app.get("/api/users/{user_id}/stats", response_model=UserStats)
def get_user_stats(user_id: str):
	stats = result_store.get_user_stats(user_id)
	if stats is None:
		raise HTTPException(status_code=404, detail="user_stats_not_found")
	return stats

@app.get("/api/payments/plans")
def list_plans():
	return {"plans": payments.PLAN_PRICES, "single_test": payments.SINGLE_TEST_PRICE, "currency": "INR"}

@app.post("/api/payments/order", response_model=PaymentOrder)
def create_payment_order(payload: CreateOrderRequest):
	return payments.create_order(payload.amount)

@app.post("/api/payments/verify", response_model=VerifyPaymentResponse)
def verify_payment(payload: VerifyPaymentRequest):
	return VerifyPaymentResponse(verified=payments.verify_payment(payload.payment_id, payload.order_id, payload.signature))

@app.post("/api/payments/subscribe", response_model=SubscribeResponse)
def subscribe(payload: SubscribeRequest):
	order = payments.subscribe(result_store, payload.user_id, payload.plan)
	return SubscribeResponse(user_id=payload.user_id, plan=payload.plan, order=order)
