import csv
import io
from typing import List, NamedTuple
from ..errors import CsvImportError
from ..models import Question, question_problem

# question, option1, option2, option3, option4, answer_index(0-3), explanation?
MIN_COLUMNS = 6

class CsvImportResult(NamedTuple):
    questions: List[Question]
    rejected_lines: List[int]

def parse_question_csv(text: str) -> CsvImportResult:
    if not text or not text.strip():
        raise CsvImportError("empty_csv")
    rows = list(csv.reader(io.StringIO(text.strip()), skipinitialspace=True))
    questions: List[Question] = []
    rejected: List[int] = []
    for line_no, row in enumerate(rows, start=1):
        cols = [c.strip() for c in row]
        if line_no == 1 and cols and cols[0].lower().startswith("question"):
            continue
        if not any(cols):
            continue
        if len(cols) < MIN_COLUMNS:
            rejected.append(line_no)
            continue
        try:
            answer_index = int(cols[5])
        except ValueError:
            rejected.append(line_no)
            continue
        q = Question(
            id="",
            text=cols[0],
            options=cols[1:5],
            correct_option_index=answer_index,
            explanation=cols[6] if len(cols) > 6 else "",
        )
        if question_problem(q):
            rejected.append(line_no)
            continue
        questions.append(q)
    if not questions:
        raise CsvImportError("no_valid_questions")
    return CsvImportResult(questions=questions, rejected_lines=rejected)
