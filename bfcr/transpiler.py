from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, TextIO

from .commands import MAX_INDEX, MAX_RUN_COUNT, Command, Run, Token
from .rust_runtime import (
    HELPER_NAMES,
    HELPER_SOURCES,
    MAIN_CLOSE,
    PROLOGUE,
    render_init_cells,
    render_statement,
)

logger = logging.getLogger(__name__)


class ParseError(Exception):
    kind = "syntax_error"

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        partial_output: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.partial_output = partial_output


class UnmatchedCloseBracket(ParseError):
    kind = "unmatched_close_bracket"

    def __init__(self, *, line: Optional[int] = None, column: Optional[int] = None) -> None:
        super().__init__("Syntax error: Unmatched ']'.", line=line, column=column)


class UnmatchedOpenBracket(ParseError):
    kind = "unmatched_open_bracket"

    def __init__(self, *, line: Optional[int] = None, column: Optional[int] = None) -> None:
        super().__init__("Syntax error: Unmatched '['.", line=line, column=column)


# === Front end ===


def split_lines(source: str) -> List[str]:
    """Split on line feeds only, keeping the line endings."""
    lines = [line + "\n" for line in source.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def scan(lines: Iterable[str]) -> Iterator[Token]:
    """Yield every command character with its 1-based position.

    Anything outside the command alphabet is a comment and is skipped.
    """
    for line_number, line in enumerate(lines, start=1):
        for column, char in enumerate(line, start=1):
            command = Command.from_char(char)
            if command is not None:
                yield Token(command=command, line=line_number, column=column)


class RunLengthEncoder:
    def __init__(self, max_count: int = MAX_RUN_COUNT) -> None:
        if max_count < 1:
            raise ValueError("max_count must be at least 1")
        self.max_count = max_count
        self._pending: Optional[Command] = None
        self._count = 0

    @property
    def pending(self) -> Optional[Run]:
        if self._pending is None:
            return None
        return Run(self._pending, self._count)

    def feed(self, command: Command) -> List[Run]:
        """Consume one command and return the runs it completes, in order."""
        completed: List[Run] = []
        if self._pending is not None:
            if command is self._pending and self._count < self.max_count:
                self._count += 1
                return completed
            completed.extend(self.flush())
        if command.repeatable:
            self._pending = command
            self._count = 1
        else:
            completed.append(Run(command))
        return completed

    def flush(self) -> List[Run]:
        if self._pending is None:
            return []
        run = Run(self._pending, self._count)
        self._pending = None
        self._count = 0
        return [run]


class BalanceValidator:
    def __init__(self) -> None:
        self.depth = 0
        self._open_positions: List[Token] = []

    def observe(self, command: Command, token: Optional[Token] = None) -> None:
        if command is Command.LOOP_START:
            self.depth += 1
            if token is not None:
                self._open_positions.append(token)
        elif command is Command.LOOP_END:
            if self.depth == 0:
                raise UnmatchedCloseBracket(
                    line=token.line if token else None,
                    column=token.column if token else None,
                )
            self.depth -= 1
            if self._open_positions:
                self._open_positions.pop()

    def finish(self) -> None:
        if self.depth != 0:
            innermost = self._open_positions[-1] if self._open_positions else None
            raise UnmatchedOpenBracket(
                line=innermost.line if innermost else None,
                column=innermost.column if innermost else None,
            )


class CellCountEstimator:
    def __init__(self, explicit: Optional[int] = None, max_index: int = MAX_INDEX) -> None:
        if explicit is not None and explicit < 0:
            raise ValueError("initial cell count must be non-negative")
        if explicit is not None and explicit > max_index:
            raise ValueError(f"initial cell count must not exceed {max_index}")
        self.explicit = explicit
        self.max_index = max_index
        self._counted = 0

    def observe(self, command: Command) -> None:
        if self.explicit is not None or command is not Command.MOVE_RIGHT:
            return
        if self._counted < self.max_index:
            self._counted += 1

    @property
    def value(self) -> int:
        if self.explicit is not None:
            return self.explicit
        return self._counted


@dataclass
class HelperRegistry:
    used: Dict[Command, bool] = field(
        default_factory=lambda: {command: False for command in Command}
    )

    def mark(self, command: Command) -> None:
        self.used[command] = True

    def is_used(self, command: Command) -> bool:
        return self.used[command]

    def helper_names(self) -> List[str]:
        names: List[str] = []
        for command in Command:
            name = HELPER_NAMES[command]
            if self.used[command] and name is not None:
                names.append(name)
        return names

    def definitions(self) -> str:
        return "".join(HELPER_SOURCES[command] for command in Command if self.used[command])


def iter_runs(
    lines: Iterable[str],
    validator: BalanceValidator,
    *,
    estimator: Optional[CellCountEstimator] = None,
    max_count: int = MAX_RUN_COUNT,
) -> Iterator[Run]:
    """Scan, coalesce and bracket-check ``lines`` in a single pass.

    ``validator.finish()`` is left to the caller so it can decide what to do
    with the output produced before an unclosed '[' is reported.
    """
    encoder = RunLengthEncoder(max_count=max_count)
    for token in scan(lines):
        if estimator is not None:
            estimator.observe(token.command)
        for run in encoder.feed(token.command):
            validator.observe(run.kind, token)
            yield run
    yield from encoder.flush()


def encode(source: str, *, max_count: int = MAX_RUN_COUNT) -> List[Run]:
    validator = BalanceValidator()
    runs = list(iter_runs(split_lines(source), validator, max_count=max_count))
    validator.finish()
    return runs


# === Code Generator ===


class RustEmitter:
    def __init__(self, sink: TextIO, registry: HelperRegistry) -> None:
        self.sink = sink
        self.registry = registry
        self.statement_count = 0

    def emit_prologue(self) -> None:
        self.sink.write(PROLOGUE)

    def emit(self, run: Run, depth: int) -> None:
        # depth is the loop depth after the run was validated.
        level = depth if run.kind is Command.LOOP_START else depth + 1
        self.sink.write("    " * level + render_statement(run) + "\n")
        self.registry.mark(run.kind)
        self.statement_count += 1

    def emit_epilogue(self, capacity: int) -> None:
        self.sink.write(MAIN_CLOSE)
        self.sink.write(render_init_cells(capacity))
        self.sink.write(self.registry.definitions())


@dataclass
class TranslationResult:
    initial_cells: int
    helpers: List[str]
    statement_count: int


class BrainfuckTranspiler:
    def __init__(self, max_run_count: int = MAX_RUN_COUNT, max_index: int = MAX_INDEX) -> None:
        self.max_run_count = max_run_count
        self.max_index = max_index

    def translate(self, source: str, initial_cells: Optional[int] = None) -> str:
        buffer = io.StringIO()
        try:
            self.translate_stream(split_lines(source), buffer, initial_cells)
        except ParseError as exc:
            exc.partial_output = buffer.getvalue()
            raise
        return buffer.getvalue()

    def translate_stream(
        self,
        lines: Iterable[str],
        sink: TextIO,
        initial_cells: Optional[int] = None,
    ) -> TranslationResult:
        """Write the Rust translation of ``lines`` to ``sink``.

        On a bracket error whatever reached ``sink`` must be discarded. An
        unmatched '[' is only reported once the whole program was written.
        """
        validator = BalanceValidator()
        estimator = CellCountEstimator(initial_cells, max_index=self.max_index)
        registry = HelperRegistry()
        emitter = RustEmitter(sink, registry)

        emitter.emit_prologue()
        for run in iter_runs(lines, validator, estimator=estimator, max_count=self.max_run_count):
            emitter.emit(run, validator.depth)
        emitter.emit_epilogue(estimator.value)
        logger.debug(
            "emitted %d statements, capacity hint %d, helpers %s",
            emitter.statement_count,
            estimator.value,
            registry.helper_names(),
        )
        validator.finish()
        return TranslationResult(
            initial_cells=estimator.value,
            helpers=registry.helper_names(),
            statement_count=emitter.statement_count,
        )


__all__ = [
    "BalanceValidator",
    "BrainfuckTranspiler",
    "CellCountEstimator",
    "HelperRegistry",
    "ParseError",
    "RunLengthEncoder",
    "RustEmitter",
    "TranslationResult",
    "UnmatchedCloseBracket",
    "UnmatchedOpenBracket",
    "encode",
    "iter_runs",
    "scan",
    "split_lines",
]
