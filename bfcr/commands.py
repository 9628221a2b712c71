from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

# 64-bit usize::MAX, the bound used by the generated program.
MAX_INDEX = 2**64 - 1
MAX_RUN_COUNT = 2**64 - 1


class Command(str, Enum):
    INC = "+"
    DEC = "-"
    MOVE_RIGHT = ">"
    MOVE_LEFT = "<"
    READ = ","
    WRITE = "."
    LOOP_START = "["
    LOOP_END = "]"

    @property
    def repeatable(self) -> bool:
        return self in REPEATABLE_COMMANDS

    @classmethod
    def from_char(cls, char: str) -> Optional["Command"]:
        return _COMMANDS_BY_CHAR.get(char)


REPEATABLE_COMMANDS = frozenset(
    {Command.INC, Command.DEC, Command.MOVE_RIGHT, Command.MOVE_LEFT}
)

_COMMANDS_BY_CHAR: Dict[str, Command] = {command.value: command for command in Command}


@dataclass(frozen=True)
class Run:
    """A command together with how many consecutive times it occurred."""

    kind: Command
    count: int = 1

    def __post_init__(self) -> None:
        if self.count <= 0:
            raise ValueError("run count must be positive")
        if self.count > 1 and not self.kind.repeatable:
            raise ValueError(f"'{self.kind.value}' cannot be repeated in a single run")


@dataclass(frozen=True)
class Token:
    command: Command
    line: int
    column: int


__all__ = [
    "Command",
    "MAX_INDEX",
    "MAX_RUN_COUNT",
    "REPEATABLE_COMMANDS",
    "Run",
    "Token",
]
