import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from .config import settings
from .errors import SessionNotFound
from .models import TopicDef
from .services.quiz_session import QuizSession

@dataclass
class SessionEntry:
	session: QuizSession
	topic: TopicDef
	user_id: Optional[str] = None
	exam: Optional[str] = None
	result_reported: bool = False
	touched_at: float = field(default_factory=time.time)
	# held for every read or transition of ``session``
	lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

class SessionStore:
	def __init__(self, retention_seconds: float = 3600) -> None:
		self.sessions: Dict[str, SessionEntry] = {}
		self.retention_seconds = retention_seconds
		self._lock = threading.Lock()

	def create_session(self, session_id: str, session: QuizSession, topic: TopicDef, user_id: Optional[str] = None, exam: Optional[str] = None) -> SessionEntry:
		entry = SessionEntry(session=session, topic=topic, user_id=user_id, exam=exam)
		self.prune_idle()
		with self._lock:
			self.sessions[session_id] = entry
		return entry

	def get(self, session_id: str) -> SessionEntry:
		with self._lock:
			entry = self.sessions.get(session_id)
		if entry is None:
			raise SessionNotFound(session_id)
		entry.touched_at = time.time()
		return entry

	def discard(self, session_id: str) -> None:
		with self._lock:
			removed = self.sessions.pop(session_id, None)
		if removed is None:
			raise SessionNotFound(session_id)

	def prune_idle(self, now: Optional[float] = None) -> List[str]:
		"""Drop sessions untouched for longer than the retention window, finished or abandoned."""
		cutoff = (now if now is not None else time.time()) - self.retention_seconds
		with self._lock:
			stale = [sid for sid, entry in self.sessions.items() if entry.touched_at < cutoff]
			for sid in stale:
				del self.sessions[sid]
		return stale

	def mark_reported(self, session_id: str) -> bool:
		"""Flag the session's result as reported; False if it already was."""
		entry = self.get(session_id)
		if entry.result_reported:
			return False
		entry.result_reported = True
		return True

session_store = SessionStore(retention_seconds=settings.session_retention_seconds)
