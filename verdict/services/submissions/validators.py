"""Community submission validation.

Every submitted case flows through:
    trim → length bounds → personal-info / harmful-content patterns
         → advice-seeking patterns

The two pattern families produce different messages so the author can
tell "remove the phone number" apart from "this is not an advice forum".
"""

from __future__ import annotations

import re

import structlog

from verdict.core.exceptions import InvalidInputError
from verdict.models.domain import VERDICT_OPTIONS, Labels

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

PROHIBITED_CONTENT_MESSAGE = "Submission contains prohibited content (personal info, harmful content)"
ADVICE_MESSAGE = "Submissions cannot request medical or legal advice"

FORBIDDEN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),  # phone numbers
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),  # emails
    re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),  # SSN-like
    re.compile(r"\b(kill|murder|suicide|self[- ]?harm)\b", re.IGNORECASE),
    re.compile(r"\b(doxx|dox|swat)\b", re.IGNORECASE),
)

ADVICE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bmedical\s+(advice|diagnosis|treatment)\b", re.IGNORECASE),
    re.compile(r"\blegal\s+(advice|counsel)\b", re.IGNORECASE),
    re.compile(r"\b(prescription|medication)\s+(advice|recommendation)\b", re.IGNORECASE),
)


def validate_submission_text(text: str, *, min_length: int, max_length: int) -> str:
    """Validate case text and return it trimmed.

    Raises InvalidInputError with ``details["reason"]`` set to one of
    ``empty``, ``too_long``, ``too_short``, ``prohibited_content`` or
    ``advice_request``.
    """
    trimmed = text.strip()
    if not trimmed:
        raise InvalidInputError("Text cannot be empty", details={"reason": "empty"})

    if len(trimmed) > max_length:
        raise InvalidInputError(
            f"Text must be {max_length} characters or less (currently {len(trimmed)})",
            details={"reason": "too_long", "length": len(trimmed)},
        )

    if len(trimmed) < min_length:
        raise InvalidInputError(
            f"Text must be at least {min_length} characters",
            details={"reason": "too_short", "length": len(trimmed)},
        )

    for pattern in FORBIDDEN_PATTERNS:
        if pattern.search(trimmed):
            logger.info("submission_rejected_by_pattern", family="prohibited_content")
            raise InvalidInputError(
                PROHIBITED_CONTENT_MESSAGE, details={"reason": "prohibited_content"}
            )

    for pattern in ADVICE_PATTERNS:
        if pattern.search(trimmed):
            logger.info("submission_rejected_by_pattern", family="advice_request")
            raise InvalidInputError(ADVICE_MESSAGE, details={"reason": "advice_request"})

    return trimmed


def validate_labels_override(labels: list[str] | None, *, max_label_length: int) -> Labels | None:
    """Check a custom label set: exactly four non-empty, short labels."""
    if labels is None:
        return None
    if len(labels) != VERDICT_OPTIONS:
        raise InvalidInputError(
            f"Labels must be a list of exactly {VERDICT_OPTIONS} strings",
            details={"count": len(labels)},
        )

    cleaned: list[str] = []
    for i, label in enumerate(labels):
        stripped = label.strip()
        if not stripped:
            raise InvalidInputError("Each label must be a non-empty string", details={"index": i})
        if len(stripped) > max_label_length:
            raise InvalidInputError(
                f"Each label must be {max_label_length} characters or less",
                details={"index": i},
            )
        cleaned.append(stripped)
    return (cleaned[0], cleaned[1], cleaned[2], cleaned[3])
