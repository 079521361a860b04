import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    question_count: int = int(os.getenv("QUIZ_QUESTION_COUNT", "5"))
    data_dir: str = os.getenv("DATA_DIR", "data")
    generation_log_dir: str = os.getenv("GENERATION_LOG_DIR", "logs")
    payment_delay_seconds: float = float(os.getenv("PAYMENT_DELAY_SECONDS", "2.0"))
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG")
    session_retention_seconds: float = float(os.getenv("SESSION_RETENTION_SECONDS", "3600"))

settings = Settings()
