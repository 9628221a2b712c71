from .bf_interpreter import BrainfuckInterpreter, ExecutionState, PointerOutOfBounds, StepLimitExceeded
from .commands import Command, Run
from .toolchain import CompileError, ToolchainOptions, compile_rust
from .transpiler import (
    BrainfuckTranspiler,
    ParseError,
    TranslationResult,
    UnmatchedCloseBracket,
    UnmatchedOpenBracket,
)

__all__ = [
    "BrainfuckInterpreter",
    "BrainfuckTranspiler",
    "Command",
    "CompileError",
    "ExecutionState",
    "ParseError",
    "PointerOutOfBounds",
    "Run",
    "StepLimitExceeded",
    "ToolchainOptions",
    "TranslationResult",
    "UnmatchedCloseBracket",
    "UnmatchedOpenBracket",
    "compile_rust",
]
