"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import json
from unittest.mock import MagicMock

import pytest

from autograde.config import Settings
from autograde.grading import GradingDispatcher, SubjectiveGrader
from autograde.models import (
    Answer,
    AssessmentGradingConfig,
    NegativeMarkingConfig,
    Question,
    ReferenceSource,
    StudentResponse,
)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no AI key and small, deterministic limits."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        ai_api_key=None,
        ai_base_url="https://test.api.local/",
        ai_model="test-model",
        ai_max_concurrent_calls=2,
        batch_max_workers=4,
        numeric_tolerance=0.001,
        plagiarism_threshold=0.8,
    )


# ==============================================================================
# Grading Config Fixtures
# ==============================================================================


@pytest.fixture
def default_config() -> AssessmentGradingConfig:
    """No negative marking, all-or-nothing blanks."""
    return AssessmentGradingConfig()


@pytest.fixture
def negative_marking_config() -> AssessmentGradingConfig:
    """25% negative marking with proportional blanks."""
    return AssessmentGradingConfig(
        negative_marking=NegativeMarkingConfig(enabled=True, percentage=25),
        partial_marking=True,
    )


# ==============================================================================
# Sample Question Fixtures
# ==============================================================================


@pytest.fixture
def mcq_question() -> Question:
    return Question(
        id="q-mcq",
        question_type="MCQ",
        subject="Geography",
        correct_answer="B",
        question_text="Which city is the capital of France?",
    )


@pytest.fixture
def true_false_question() -> Question:
    return Question(
        id="q-tf",
        question_type="True/False",
        subject="Science",
        correct_answer="True",
        question_text="Water boils at 100 degrees Celsius at sea level.",
    )


@pytest.fixture
def blanks_question() -> Question:
    return Question(
        id="q-blanks",
        question_type="Fill in the Blanks",
        subject="Geography",
        correct_answer=["Paris", "Berlin", "Madrid"],
        question_text="The capitals of France, Germany and Spain are ___, ___ and ___.",
    )


@pytest.fixture
def math_question() -> Question:
    return Question(
        id="q-math",
        question_type="Short Answer",
        subject="Mathematics",
        correct_answer="3.14159",
        question_text="Give the value of pi to five decimal places.",
    )


@pytest.fixture
def short_answer_question() -> Question:
    return Question(
        id="q-short",
        question_type="Short Answer",
        subject="Biology",
        correct_answer="The mitochondria produces energy for the cell",
        question_text="What is the role of the mitochondria?",
    )


@pytest.fixture
def essay_question() -> Question:
    return Question(
        id="q-essay",
        question_type="Essay",
        subject="History",
        correct_answer="Causes of the First World War",
        question_text="Discuss the causes of the First World War.",
    )


@pytest.fixture
def sample_questions(
    mcq_question: Question,
    true_false_question: Question,
    blanks_question: Question,
    math_question: Question,
    short_answer_question: Question,
    essay_question: Question,
) -> list[Question]:
    """One question of every routed kind."""
    return [
        mcq_question,
        true_false_question,
        blanks_question,
        math_question,
        short_answer_question,
        essay_question,
    ]


# ==============================================================================
# Sample Response Fixtures
# ==============================================================================


@pytest.fixture
def sample_responses() -> list[StudentResponse]:
    """Responses to every sample question, in submission order."""
    return [
        StudentResponse(
            question_id="q-mcq",
            question_type="MCQ",
            answer=Answer(selected_option="B"),
            max_marks=4,
        ),
        StudentResponse(
            question_id="q-tf",
            question_type="True/False",
            answer=Answer(selected_option="False"),
            max_marks=4,
        ),
        StudentResponse(
            question_id="q-blanks",
            question_type="Fill in the Blanks",
            answer=Answer(fill_answers=("paris", "Berlin", "Rome")),
            max_marks=6,
        ),
        StudentResponse(
            question_id="q-math",
            question_type="Short Answer",
            answer=Answer(text_answer="3.14160"),
            max_marks=2,
        ),
        StudentResponse(
            question_id="q-short",
            question_type="Short Answer",
            answer=Answer(text_answer="The mitochondria produces energy for the cell."),
            max_marks=5,
        ),
        StudentResponse(
            question_id="q-essay",
            question_type="Essay",
            answer=Answer(text_answer="Alliances, militarism and nationalism."),
            max_marks=10,
        ),
    ]


@pytest.fixture
def reference_corpus() -> list[ReferenceSource]:
    return [
        ReferenceSource(
            source="textbook-ch4",
            text="The mitochondria produces energy for the cell through respiration.",
        ),
        ReferenceSource(
            source="encyclopedia",
            text="Paris has been the capital of France since the tenth century.",
        ),
    ]


# ==============================================================================
# AI Provider Fixtures
# ==============================================================================


@pytest.fixture
def sample_ai_response() -> str:
    """A well-formed AI grading response."""
    return json.dumps(
        {
            "score": 0.8,
            "marksAwarded": 4,
            "confidence": 0.9,
            "explanation": "Covers the main role of the mitochondria.",
            "keyPoints": ["energy production", "cellular respiration"],
            "qualityScore": 0.8,
            "relevanceScore": 0.95,
        }
    )


@pytest.fixture
def mock_provider(sample_ai_response: str) -> MagicMock:
    """Mock AI provider returning a well-formed response."""
    provider = MagicMock()
    provider.generate.return_value = sample_ai_response
    return provider


@pytest.fixture
def failing_provider() -> MagicMock:
    """Mock AI provider whose every call fails."""
    provider = MagicMock()
    provider.generate.side_effect = TimeoutError("provider timed out")
    return provider


@pytest.fixture
def subjective_grader(mock_provider: MagicMock, test_settings: Settings) -> SubjectiveGrader:
    return SubjectiveGrader(provider=mock_provider, settings=test_settings)


@pytest.fixture
def dispatcher(subjective_grader: SubjectiveGrader, test_settings: Settings) -> GradingDispatcher:
    return GradingDispatcher(settings=test_settings, subjective=subjective_grader)
