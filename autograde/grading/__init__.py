"""
Grading Engine Module.

Per-type graders, the dispatcher that routes responses to them, and the
batch orchestrator that grades a whole submission.
"""

from autograde.grading.batch import BatchGradingReport, BatchOrchestrator
from autograde.grading.dispatcher import GradingDispatcher, GradingRoute, resolve_route
from autograde.grading.llm_client import GradingProvider, LLMClient, LLMError
from autograde.grading.numeric import NumericExpressionGrader
from autograde.grading.objective import ObjectiveGrader
from autograde.grading.partial_credit import PartialCreditGrader
from autograde.grading.prompt_builder import PromptBuilder
from autograde.grading.scorer import ParsedGrade, ResponseParser, ScoringError
from autograde.grading.subjective import ProviderResult, SubjectiveGrader
from autograde.grading.summary import DEFAULT_GRADING_SCALE, letter_grade, summarize_scores

__all__ = [
    "BatchGradingReport",
    "BatchOrchestrator",
    "DEFAULT_GRADING_SCALE",
    "GradingDispatcher",
    "GradingProvider",
    "GradingRoute",
    "LLMClient",
    "LLMError",
    "NumericExpressionGrader",
    "ObjectiveGrader",
    "ParsedGrade",
    "PartialCreditGrader",
    "PromptBuilder",
    "ProviderResult",
    "ResponseParser",
    "ScoringError",
    "SubjectiveGrader",
    "letter_grade",
    "resolve_route",
    "summarize_scores",
]
