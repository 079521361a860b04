import os
import uvicorn
from .config import settings

def main() -> None:
	uvicorn.run(
		"udan_bangla.main:app",
		host=os.getenv("HOST", "127.0.0.1"),
		port=int(os.getenv("PORT", "8000")),
		log_level=settings.log_level.lower(),
	)
