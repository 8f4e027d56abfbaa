"""
Response parser for AI grading output.

Pulls the first JSON object out of the provider's raw text and converts it
into a ParsedGrade. The provider is asked for JSON-only output, so this
extraction is the degraded path for providers or models that wrap the JSON
in prose or markdown. Malformed output never raises past `parse`.
"""

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from autograde.grading.base import clamp_unit

logger = logging.getLogger(__name__)


class ScoringError(Exception):
    """Raised when score parsing or validation fails."""

    def __init__(self, message: str, raw_response: str | None = None):
        self.raw_response = raw_response
        super().__init__(message)


class ParsedGrade(BaseModel):
    """A grading decision read from the provider's response."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=1.0)
    marks_awarded: float | None = Field(
        default=None,
        description="Marks reported by the provider, None if it reported none",
    )
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    explanation: str = "Graded by AI"
    key_points: tuple[str, ...] = ()
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)

    @classmethod
    def unparsed(cls) -> "ParsedGrade":
        """The low-confidence stand-in used when a response cannot be parsed."""
        return cls(
            score=0.5,
            marks_awarded=0.0,
            confidence=0.3,
            explanation="Could not parse AI response",
            quality_score=0.5,
            relevance_score=0.5,
        )


class ResponseParser:
    """
    Parses AI grading responses.

    Ensures:
    1. A JSON object can be located in the response
    2. The object carries a score
    3. Every numeric value is a number and lies within its range
    """

    _FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

    def parse(self, response: str | None) -> ParsedGrade | None:
        """
        Parse an AI response into a ParsedGrade.

        Args:
            response: Raw response text.

        Returns:
            ParsedGrade, or None if no usable JSON object was found.
        """
        if not response:
            logger.warning("Empty AI grading response")
            return None

        try:
            json_str = self._extract_json(response)
            try:
                data = json.loads(json_str)
            except (json.JSONDecodeError, RecursionError) as e:
                # Deeply nested arrays exhaust the decoder's recursion limit
                raise ScoringError(f"Invalid JSON in response: {e}", raw_response=response) from e
            return self._convert(data, response)
        except ScoringError as e:
            logger.warning("Unusable AI grading response: %s", e)
            return None

    def _extract_json(self, response: str) -> str:
        """
        Extract the first top-level JSON object from the response.

        A fenced ```json block is preferred when present. Braces inside JSON
        strings do not count towards nesting.

        Raises:
            ScoringError: If no complete object is present.
        """
        fenced = self._FENCE_RE.search(response)
        text = fenced.group(1) if fenced else response

        brace_start = text.find("{")
        if brace_start == -1:
            raise ScoringError("No JSON object found in response", raw_response=response)

        depth = 0
        in_string = False
        escaped = False
        for i, char in enumerate(text[brace_start:], start=brace_start):
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[brace_start : i + 1]

        raise ScoringError("Unclosed JSON object in response", raw_response=response)

    def _convert(self, data: Any, raw_response: str) -> ParsedGrade:
        """
        Validate parsed data and convert to ParsedGrade.

        Raises:
            ScoringError: If validation fails.
        """
        if not isinstance(data, dict):
            raise ScoringError("Response JSON must be an object", raw_response=raw_response)

        if "score" not in data:
            raise ScoringError("Missing required field: score", raw_response=raw_response)

        score = clamp_unit(self._parse_number(data["score"], "score", raw_response))

        marks_awarded: float | None = None
        if data.get("marksAwarded") is not None:
            marks_awarded = max(
                0.0, self._parse_number(data["marksAwarded"], "marksAwarded", raw_response)
            )

        key_points = data.get("keyPoints") or []
        if not isinstance(key_points, list):
            key_points = [key_points]

        return ParsedGrade(
            score=score,
            marks_awarded=marks_awarded,
            confidence=self._optional_unit(data, "confidence", 0.5, raw_response),
            explanation=str(data.get("explanation") or "Graded by AI"),
            key_points=tuple(str(point) for point in key_points),
            quality_score=self._optional_unit(data, "qualityScore", 0.0, raw_response),
            relevance_score=self._optional_unit(data, "relevanceScore", 0.0, raw_response),
        )

    def _optional_unit(
        self, data: dict[str, Any], field_name: str, default: float, raw_response: str
    ) -> float:
        """Read an optional [0, 1] value, clamping anything out of range."""
        value = data.get(field_name)
        if value is None:
            return default
        return clamp_unit(self._parse_number(value, field_name, raw_response))

    def _parse_number(self, value: Any, field_name: str, raw_response: str) -> float:
        """
        Parse a value as float.

        Raises:
            ScoringError: If the value is not numeric.
        """
        if isinstance(value, bool):
            raise ScoringError(
                f"Invalid numeric value for {field_name}: {value}", raw_response=raw_response
            )
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise ScoringError(
                f"Invalid numeric value for {field_name}: {value}", raw_response=raw_response
            ) from e
        if number != number:  # NaN
            raise ScoringError(f"Invalid numeric value for {field_name}: NaN", raw_response=raw_response)
        return number
