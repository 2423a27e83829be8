"""Pydantic schemas for request and response payloads.

These schemas are used by the chat router to validate input and to
serialize output, and they generate the OpenAPI documentation.
"""

from typing import Any, List, Literal

from pydantic import BaseModel, Field, constr


class ChatMessage(BaseModel):
    """One prior turn of the conversation, sent back by the client."""

    role: Literal["user", "assistant"] = Field(
        description="Who wrote the message",
        examples=["assistant"],
    )
    content: constr(strip_whitespace=True, min_length=1, max_length=2000) = Field(
        description="Message text",
        examples=["Top 2 campaigns by CTR:\n- 1. Spring Sale - 4.00%\n- 2. Brand Search - 1.00%"],
    )

    model_config = {"frozen": True}


class ChatRequest(BaseModel):
    """Question plus the conversation so far.

    The server keeps no conversation state; the client sends the last
    turns (at most 16) with every request.
    """

    question: constr(strip_whitespace=True, min_length=2, max_length=500) = Field(
        description="Free-text question about campaign or ad performance",
        examples=["what about the second one?"],
    )
    history: List[ChatMessage] = Field(
        default_factory=list,
        max_length=16,
        description="Previous messages, oldest first",
    )


class ChatResponse(BaseModel):
    """Answer to a chat question."""

    success: bool = Field(default=True, description="Always true for answered questions")
    answer: str = Field(description="Answer text")
    mode: Literal["ai", "basic"] = Field(
        description="'ai' when the language-model gateway answered, 'basic' for the rule-based engine",
    )


class ErrorResponse(BaseModel):
    """Error payload for validation and internal failures."""

    error: str = Field(description="Error category", examples=["Validation error"])
    details: List[Any] | None = Field(
        default=None,
        description="Per-field validation issues (validation errors only)",
    )
    message: str | None = Field(
        default=None,
        description="Failure description (internal errors only)",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok", description="Status message")
