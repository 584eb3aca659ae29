"""Data types shared by the normalization pipeline.

Wire-facing records (``Message``, ``ToolInvocation``, ``RetryPolicy``) are
pydantic models so they can be decoded straight from backend payloads. The
per-request results (outcomes, retry contexts, partial states) are plain frozen
dataclasses and are matched with ``isinstance``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import Config
from .errors import MaxRetriesExceededError, ParseError

T = TypeVar("T")


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolInvocation(BaseModel):
    """A request from the model to call a named tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_function(cls, data: Any) -> Any:
        # Ollama nests native calls as {"function": {"name", "arguments"}}
        if isinstance(data, dict) and "name" not in data and isinstance(data.get("function"), dict):
            data = data["function"]
        if isinstance(data, dict) and not isinstance(data.get("arguments", {}), dict):
            data = {**data, "arguments": {}}
        return data

    def to_payload(self) -> Dict[str, Any]:
        return {"function": {"name": self.name, "arguments": dict(self.arguments)}}


class Message(BaseModel):
    """One chat message as exchanged with the backend."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""
    thinking: Optional[str] = None
    tool_calls: Optional[List[ToolInvocation]] = None
    tool_name: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Message":
        return cls.model_validate(payload)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.thinking:
            payload["thinking"] = self.thinking
        if self.tool_calls:
            payload["tool_calls"] = [call.to_payload() for call in self.tool_calls]
        if self.tool_name:
            payload["tool_name"] = self.tool_name
        return payload


@dataclass(frozen=True)
class ToolInvocations:
    invocations: List[ToolInvocation]


@dataclass(frozen=True)
class Content:
    text: str


@dataclass(frozen=True)
class Empty:
    pass


ParsedOutcome = Union[ToolInvocations, Content, Empty]


@dataclass(frozen=True)
class ChatDelta:
    """One streamed chunk of an assistant reply."""

    content: str = ""
    thinking: str = ""
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    done: bool = False


class RetryPolicy(BaseModel):
    """How many attempts a structured request gets and how they are spaced."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(3, ge=0)
    include_error_context: bool = True
    retry_delay: float = Field(0.5, ge=0)

    @classmethod
    def default(cls) -> "RetryPolicy":
        return cls()

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(max_attempts=0, include_error_context=False, retry_delay=0)

    @classmethod
    def aggressive(cls) -> "RetryPolicy":
        return cls(max_attempts=5, include_error_context=True, retry_delay=0.3)

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            max_attempts=Config.RETRY_MAX_ATTEMPTS,
            include_error_context=Config.RETRY_INCLUDE_ERROR_CONTEXT,
            retry_delay=Config.RETRY_DELAY,
        )


@dataclass(frozen=True)
class RetryContext:
    attempt_number: int
    max_attempts: int
    error: ParseError
    failed_content: str = ""

    @property
    def remaining_attempts(self) -> int:
        return max(0, self.max_attempts - self.attempt_number)


@dataclass(frozen=True)
class PartialState(Generic[T]):
    accumulated_content: str
    partial_value: Optional[T] = None
    is_complete: bool = False
    progress: Optional[float] = None


@dataclass(frozen=True)
class RetrySummary:
    total_attempts: int
    max_attempts: int
    errors: List[str]
    is_exhausted: bool

    def describe(self) -> str:
        status = " (exhausted)" if self.is_exhausted else ""
        lines = [f"Retry Summary: {self.total_attempts}/{self.max_attempts} attempts{status}"]
        if self.errors:
            lines.append("Errors:")
            lines.extend(f"  {i}. {err}" for i, err in enumerate(self.errors, start=1))
        return "\n".join(lines)


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    expected: str
    observed: str
    value: Optional[str] = None

    @property
    def message(self) -> str:
        if self.observed == "missing":
            return f"Missing required field '{self.field}'"
        got = f"{self.observed} ({self.value})" if self.value else self.observed
        return f"Type mismatch at '{self.field}': expected {self.expected}, got {got}"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    error: Union[ParseError, MaxRetriesExceededError]


StructuredResult = Union[Success[T], Failure]


__all__ = [
    "Role",
    "ToolInvocation",
    "Message",
    "ToolInvocations",
    "Content",
    "Empty",
    "ParsedOutcome",
    "ChatDelta",
    "RetryPolicy",
    "RetryContext",
    "PartialState",
    "RetrySummary",
    "ValidationIssue",
    "Success",
    "Failure",
    "StructuredResult",
]
