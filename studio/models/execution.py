# studio/models/execution.py
from typing import Any, Literal
from pydantic import BaseModel, Field
from studio.models.blueprint import Blueprint


class ToolCallFunction(BaseModel):
    name: str
    arguments: Any = None


class ToolCall(BaseModel):
    id: str
    type: str
    function: ToolCallFunction


class ChatMessage(BaseModel):
    role: str
    content: str
    tool_calls: list[ToolCall] | None = None


class RunRequest(BaseModel):
    graph: Blueprint
    input: str


class RunResponse(BaseModel):
    execution_id: str | None = None
    history: list[ChatMessage] = Field(default_factory=list)
    final_state: Any = None


class RunInput(BaseModel):
    input: str


class RunOutcome(BaseModel):
    status: Literal["completed", "failed"]
    execution_id: str | None = None
    blueprint: dict[str, Any]
    history: list[ChatMessage]
    final_state: Any = None
