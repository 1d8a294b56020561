"""Transcript data model passed from the assembler to the exporters."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

    @property
    def label(self) -> str:
        return "You" if self is Role.USER else "Gemini"


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str
    timestamp: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))
        if not self.content or not self.content.strip():
            raise ValueError("Turn content must not be empty")

    def fingerprint(self, prefix: int = 200) -> str:
        return f"{self.role.value}::{self.content.strip()[:prefix]}"


@dataclass(frozen=True)
class Report:
    title: str
    content: str


@dataclass(frozen=True)
class Transcript:
    title: str
    turns: tuple = field(default_factory=tuple)
    report: Optional[Report] = None

    def __post_init__(self):
        # Always hand renderers an immutable sequence
        if not isinstance(self.turns, tuple):
            object.__setattr__(self, "turns", tuple(self.turns))

    @property
    def turn_count(self) -> int:
        return len(self.turns)

    @property
    def is_empty(self) -> bool:
        return not self.turns and self.report is None
