"""
Data models for provider invocations.

Each attempted operation (encode, decode, lookup, search) produces one
OperationOutcome. A ProviderResult keeps them in the order they ran, and
flattens them into the merged JSON record the HTTP API has always returned
only when the response is serialized.
"""

from typing import Any, Dict, List, Literal, Optional
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class ProviderName(str, Enum):
    """Known provider names served under /api/{name}."""
    MORSE = "morse"
    ROMANS = "romans"
    SPAMWATCH = "spamwatch"
    LYRICS = "lyrics"


class OperationOutcome(BaseModel):
    """
    The outcome of one attempted provider operation.

    Exactly one of ``result`` and ``error`` is set. Transforms put their
    output in ``result``; lookups leave ``result`` empty and carry the
    record they found in ``fields``, which is merged at the top level of
    the response.
    """

    operation: str = Field(description="Operation name, e.g. 'encode'")
    kind: Literal["transform", "lookup"] = "transform"
    input: Optional[str] = Field(default=None, description="Raw input parameter")
    result: Optional[str] = Field(default=None)
    error: Optional[str] = Field(default=None)
    fields: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_exclusive(self) -> "OperationOutcome":
        if (self.result is None) == (self.error is None):
            raise ValueError("exactly one of result and error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None


class ProviderResult(BaseModel):
    """Ordered outcomes of a single /api/{name} invocation."""

    provider: str
    outcomes: List[OperationOutcome] = Field(default_factory=list)

    @property
    def is_recognized(self) -> bool:
        return bool(self.outcomes)

    def to_payload(self) -> Dict[str, Any]:
        """
        Flatten outcomes into the legacy merged response record.

        Transforms write ``input`` and ``result``; a failed transform reports
        its message as ``result``. Lookups write ``error`` (empty on success)
        followed by the fields they found. Later outcomes overwrite earlier
        ones on shared keys.
        """
        data: Dict[str, Any] = {}
        for outcome in self.outcomes:
            if outcome.kind == "transform":
                data["input"] = outcome.input
                data["result"] = outcome.result if outcome.ok else outcome.error
            else:
                data["error"] = outcome.error or ""
                data.update(outcome.fields)
        return data
