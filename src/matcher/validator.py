"""
Validation of the LLM scoring response.

The model is asked for a JSON object; the reply is parsed and checked against
ScoringResponse before anything is turned into a MatchResult. Every violation
is a retryable ServiceError with a field-specific code.
"""

import json
import re
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    field_validator,
)

from shared.errors import ServiceError

SERVICE_NAME = "ai-matching"

FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL | re.IGNORECASE)

# Checked in this order; the first failing field names the error
FIELD_ERROR_CODES = {
    "matchScore": ("INVALID_MATCH_SCORE", "Invalid matchScore in response"),
    "suitable": ("INVALID_SUITABLE", "Invalid suitable field in response"),
    "missingSkills": ("INVALID_MISSING_SKILLS", "Invalid missingSkills in response"),
    "experienceGap": ("INVALID_EXPERIENCE_GAP", "Invalid experienceGap in response"),
    "reasoning": ("INVALID_REASONING", "Invalid reasoning in response"),
}


class ScoringResponse(BaseModel):
    """Expected shape of the model's scoring reply."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    match_score: float = Field(
        ..., alias="matchScore", ge=0, le=100, strict=True, allow_inf_nan=False
    )
    suitable: StrictBool
    missing_skills: list[Any] = Field(..., alias="missingSkills", strict=True)
    experience_gap: float = Field(
        ..., alias="experienceGap", strict=True, allow_inf_nan=False
    )
    reasoning: StrictStr

    @field_validator("match_score", "experience_gap", mode="before")
    @classmethod
    def reject_bool(cls, value: Any) -> Any:
        # bool is an int subclass in Python, JSON true/false is not a number
        if isinstance(value, bool):
            raise ValueError("must be a number")
        return value

    @field_validator("missing_skills")
    @classmethod
    def stringify_skills(cls, value: list[Any]) -> list[str]:
        return [item if isinstance(item, str) else json.dumps(item) for item in value]

    @field_validator("reasoning")
    @classmethod
    def require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


def extract_json_text(raw_text: str) -> str:
    """Return the inside of a fenced code block if present, else the text as-is."""
    match = FENCED_BLOCK.search(raw_text)
    if match:
        return match.group(1)
    return raw_text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} is not valid JSON")


def validate_response(raw_text: str) -> ScoringResponse:
    """
    Parse and schema-check a raw scoring reply.

    Raises:
        ServiceError: retryable, with INVALID_JSON, INVALID_RESPONSE or a
            field-specific INVALID_* code
    """
    try:
        data = json.loads(extract_json_text(raw_text), parse_constant=_reject_constant)
    except ValueError:
        raise ServiceError(
            "Failed to parse LLM response as JSON",
            SERVICE_NAME,
            "INVALID_JSON",
            retryable=True,
        )

    if not isinstance(data, dict):
        raise ServiceError(
            "LLM response is not a JSON object",
            SERVICE_NAME,
            "INVALID_RESPONSE",
            retryable=True,
        )

    try:
        return ScoringResponse.model_validate(data)
    except ValidationError as e:
        failed = {error["loc"][0] for error in e.errors() if error["loc"]}
        for field_name, (code, message) in FIELD_ERROR_CODES.items():
            if field_name in failed:
                raise ServiceError(message, SERVICE_NAME, code, retryable=True)
        raise ServiceError(
            "Invalid LLM response structure",
            SERVICE_NAME,
            "INVALID_RESPONSE",
            retryable=True,
        )
