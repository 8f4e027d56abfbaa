"""
Prompt builder for AI short answer grading.

Constructs the prompts sent to the grading provider. The user prompt embeds
the question, the reference answer, the student's answer and the marks
available, and fixes the JSON shape the response parser expects.
"""


class PromptBuilder:
    """Builds grading prompts for free-text short answers."""

    SYSTEM_PROMPT = """You are an expert teacher grading short answers against a reference answer.

RULES:
1. Judge the student's answer on meaning, not wording. Paraphrases of the reference answer are correct.
2. Award marks in proportion to how much of the reference answer the student covers.
3. Ignore spelling, grammar and formatting unless they change the meaning.
4. Your output MUST be a single valid JSON object in the exact format requested.
5. Do not add any text before or after the JSON."""

    @staticmethod
    def build_grading_prompt(
        question_text: str,
        correct_answer: str,
        student_answer: str,
        max_marks: float,
    ) -> str:
        """
        Build the user prompt for grading one short answer.

        Args:
            question_text: The question as shown to the student.
            correct_answer: The reference answer.
            student_answer: The student's answer text.
            max_marks: Marks the question is worth.

        Returns:
            The formatted user prompt.
        """
        return f"""Grade this student's answer.

Question: {question_text}
Correct Answer: {correct_answer}
Max Marks: {max_marks:g}

STUDENT ANSWER:
---BEGIN ANSWER---
{student_answer}
---END ANSWER---

OUTPUT FORMAT (respond with ONLY this JSON, no other text):
{{
  "score": <number between 0 and 1, where 1 means a perfect answer>,
  "marksAwarded": <number between 0 and {max_marks:g}>,
  "confidence": <number between 0 and 1>,
  "explanation": "<why the answer earned this score>",
  "keyPoints": ["<key point the student covered>"],
  "qualityScore": <number between 0 and 1>,
  "relevanceScore": <number between 0 and 1>
}}"""

    @staticmethod
    def get_system_prompt() -> str:
        """Get the system prompt for short answer grading."""
        return PromptBuilder.SYSTEM_PROMPT
