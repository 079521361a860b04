import json

class PromptBuilder:
	def build(self, *, topic: str, difficulty: str, question_count: int) -> str:
		context = {
			"meta": {"topic": topic, "difficulty": difficulty},
			"format": {
				"num_questions": question_count,
				"question_shape": {
					"questionText": "string",
					"options": ["string", "string", "string", "string"],
					"correctAnswerIndex": "integer 0-3",
					"explanation": "string"
				}
			}
		}
		instructions = (
			f"Generate {question_count} multiple-choice questions about \"{topic}\" specifically tailored for West Bengal competitive exams (like WBCS). "
			f"Difficulty level: {difficulty}. "
			"Ensure the questions are relevant to the region's history, geography, culture, or general exam syllabus. "
			"Every question has exactly 4 options and correctAnswerIndex is the zero-based index of the correct option. "
			"Provide the output in English, but you may use Bengali terms where appropriate. "
			"Output must be strict JSON only: an array following format.question_shape in the CONTEXT JSON below."
		)
		return instructions + "\n" + json.dumps(context, ensure_ascii=False)
