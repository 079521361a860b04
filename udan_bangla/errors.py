class QuizError(Exception):
	code = "quiz_error"


class InvalidQuestionSet(QuizError):
	code = "invalid_question_set"


class QuestionGenerationError(InvalidQuestionSet):
	code = "question_generation_failed"


class InvalidState(QuizError):
	code = "invalid_state"


class AlreadyAnswered(QuizError):
	code = "already_answered"


class NotYetAnswered(QuizError):
	code = "not_yet_answered"


class NoSelection(QuizError):
	code = "no_selection"


class InvalidOptionIndex(QuizError):
	code = "invalid_option_index"


class SessionNotFound(QuizError):
	code = "session_not_found"


class UnknownTopic(QuizError):
	code = "unknown_topic"


class CsvImportError(QuizError):
	code = "csv_import_failed"


class PaymentError(QuizError):
	code = "payment_failed"
