# Identifier helpers: case id normalization and fresh ids for new records
import time
import uuid

from case_records_service.app.service.exceptions import CaseValidationError

CASE_ID_PREFIX = "case-"


def normalize_case_id(raw: str) -> str:
    """
    Canonicalizes a case reference so that every spelling of the same case
    compares equal: "123", "case-123" and "Case-123" all end up as
    "case-123", and normalizing twice changes nothing.

    An empty input gives "", which callers must never treat as a case id.
    """
    if not raw:
        return ""
    if raw.startswith(CASE_ID_PREFIX):
        return raw
    # A prefix in another casing ("Case-12") is replaced, not doubled.
    stripped = raw[len(CASE_ID_PREFIX):] if raw.lower().startswith(CASE_ID_PREFIX) else raw
    return f"{CASE_ID_PREFIX}{stripped}"


def is_valid_case_id(raw: str) -> bool:
    return normalize_case_id(raw) != ""


class CaseID(str):
    """
    A case id that is always in normalized form.

    Stores accept plain strings at their boundary and turn them into CaseID,
    so comparisons between stored ids and caller input never mix raw and
    normalized spellings.
    """

    def __new__(cls, raw: str):
        normalized = normalize_case_id(str(raw) if raw is not None else "")
        if not normalized:
            raise CaseValidationError("case_id", "case reference must not be empty")
        return super().__new__(cls, normalized)

    def __repr__(self) -> str:
        return f"CaseID({str.__repr__(self)})"


def now_ms() -> int:
    """Current time as integer epoch milliseconds, the timestamp unit of all records."""
    return int(time.time() * 1000)


def new_case_id() -> str:
    return f"{CASE_ID_PREFIX}{uuid.uuid4().hex}"


def new_document_id() -> str:
    return f"doc-{uuid.uuid4().hex}"


def new_message_id() -> str:
    return f"msg-{uuid.uuid4().hex}"
