from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

OPTION_COUNT = 4

class Question(BaseModel):
    id: str
    text: str
    options: List[str]
    correct_option_index: int
    explanation: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        # Stored and generated ids arrive as ints or strings.
        if isinstance(value, int):
            return str(value)
        return value

def question_problem(question: Question) -> Optional[str]:
    """Return a short reason when ``question`` cannot be used in a session, else None."""
    if not (question.text or "").strip():
        return "empty_text"
    if len(question.options) != OPTION_COUNT:
        return "wrong_option_count"
    if any(not (o or "").strip() for o in question.options):
        return "blank_option"
    if not 0 <= question.correct_option_index < len(question.options):
        return "correct_index_out_of_range"
    return None

class TopicDef(BaseModel):
    id: str
    title: str
    description: str
    icon_name: str

class QuestionView(BaseModel):
    id: str
    text: str
    options: List[str]
    correct_option_index: Optional[int] = None
    explanation: Optional[str] = None

class SessionView(BaseModel):
    session_id: str
    topic_id: str
    status: str
    current_index: int
    total: int
    score: int
    selected_option_index: Optional[int] = None
    answered_current: bool
    question: QuestionView

class StartQuizRequest(BaseModel):
    topic_id: str
    exam: Optional[str] = None
    user_id: Optional[str] = None

class SelectOptionRequest(BaseModel):
    option_index: int

class SubmitAnswerResponse(BaseModel):
    correct: bool
    correct_option_index: int
    explanation: str
    score: int

class AdvanceResponse(BaseModel):
    status: str
    completed: bool
    session: Optional[SessionView] = None

class QuizResultResponse(BaseModel):
    session_id: str
    score: int
    total: int
    percentage: int
    message: str

class NewQuestion(BaseModel):
    text: str
    options: List[str]
    correct_option_index: int = 0
    explanation: str = ""

class CsvUploadRequest(BaseModel):
    csv: str

class CsvUploadResponse(BaseModel):
    added: int
    rejected_lines: List[int] = Field(default_factory=list)

class AdminStatsResponse(BaseModel):
    total_questions: int
    questions_by_topic: dict[str, int]
    total_users: int
    active_sessions: int

class SubjectPerformance(BaseModel):
    subject: str
    accuracy: int
    total_questions: int

class UserStats(BaseModel):
    target_exam: str = "WBJEE"
    tests_attempted: int = 0
    average_score: int = 0
    global_rank: int = 0
    subscription_plan: str = "Free"
    subject_wise: List[SubjectPerformance] = Field(default_factory=list)
    weak_chapters: List[str] = Field(default_factory=list)
    recent_scores: List[int] = Field(default_factory=list)

class QuizResultRecord(BaseModel):
    user_id: str
    topic_id: str
    topic_title: str
    exam: Optional[str] = None
    score: int
    total_questions: int
    percentage: float
    finished_at: float

class PaymentOrder(BaseModel):
    id: str
    amount: int
    currency: str = "INR"
    receipt: str

class CreateOrderRequest(BaseModel):
    amount: int

class VerifyPaymentRequest(BaseModel):
    payment_id: str
    order_id: str
    signature: str

class VerifyPaymentResponse(BaseModel):
    verified: bool

class SubscribeRequest(BaseModel):
    user_id: str
    plan: str

class SubscribeResponse(BaseModel):
    user_id: str
    plan: str
    order: PaymentOrder
