"""
Wire models for the OpenAI chat-completions API.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

AVAILABLE_MODELS: List[str] = [
    "chatgpt-4o-latest",
    "gpt-4o",
    "gpt-4o-mini",
    "o1",
    "o1-mini",
    "o3-mini",
    "o1-preview",
]


class MessageRole(str, Enum):
    """Message roles in a conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A message in a conversation."""

    model_config = ConfigDict(use_enum_values=True)

    role: MessageRole
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content)


class ChatRequest(BaseModel):
    """Request body for POST /chat/completions."""
    model: str
    messages: List[Message]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    stream: bool = False


class ChunkDelta(BaseModel):
    """Incremental content of a streamed choice."""

    model_config = ConfigDict(extra="ignore")

    role: Optional[str] = None
    content: Optional[str] = None


class ChunkChoice(BaseModel):
    """One choice inside a streamed chunk."""

    model_config = ConfigDict(extra="ignore")

    index: int = 0
    delta: ChunkDelta = Field(default_factory=ChunkDelta)
    finish_reason: Optional[str] = None


class ChatCompletionChunk(BaseModel):
    """A single server-sent event of a streamed completion."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[ChunkChoice] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(choice.delta.content or "" for choice in self.choices)


class CompletionMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str = "assistant"
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: CompletionMessage = Field(default_factory=CompletionMessage)
    finish_reason: Optional[str] = None


class ChatCompletion(BaseModel):
    """Non-streamed response of POST /chat/completions."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[CompletionChoice] = Field(default_factory=list)

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class ModelInfo(BaseModel):
    """Entry of GET /models."""

    model_config = ConfigDict(extra="ignore")

    id: str
    owned_by: Optional[str] = None


class ModelList(BaseModel):
    """Response of GET /models."""

    model_config = ConfigDict(extra="ignore")

    data: List[ModelInfo] = Field(default_factory=list)
