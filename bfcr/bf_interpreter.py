from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterator, List, Optional

from .commands import MAX_INDEX, Command, Run
from .transpiler import encode


class StepLimitExceeded(RuntimeError):
    """Raised when Brainfuck execution exceeds the configured step budget."""


class PointerOutOfBounds(RuntimeError):
    """Raised where the generated program would panic on a pointer move."""


@dataclass
class ExecutionState:
    step: int
    pc: int
    command: Optional[str]
    count: int
    pointer: int
    tape_start: int
    tape: List[int]
    output: bytes
    program_length: int


@dataclass
class BrainfuckInterpreter:
    """Runs Brainfuck with the same semantics as the generated Rust program.

    The tape starts with one cell and grows on demand. Input is consumed one
    line at a time; running out of input ends the program without error.
    """

    max_index: int = MAX_INDEX

    tape: List[int] = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    output_buffer: bytearray = field(init=False, repr=False)
    input_exhausted: bool = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.tape = [0]
        self.pointer = 0
        self.output_buffer = bytearray()
        self.input_exhausted = False
        self._line_cache = b""
        self._line_pos = 0

    def run(
        self,
        code: str,
        input_data: bytes = b"",
        max_steps: Optional[int] = None,
    ) -> bytes:
        for _ in self.step(code, input_data=input_data, max_steps=max_steps):
            pass
        return bytes(self.output_buffer)

    def step(
        self,
        code: str,
        input_data: bytes = b"",
        max_steps: Optional[int] = None,
        tape_window: int = 10,
    ) -> Iterator[ExecutionState]:
        self.reset()
        program = encode(code)
        input_lines: Deque[bytes] = deque(input_data.splitlines(keepends=True))
        jump_map = self._build_jump_map(program)
        pc = 0
        steps = 0
        program_length = len(program)

        while pc < program_length:
            if max_steps is not None and steps >= max_steps:
                raise StepLimitExceeded("Brainfuck program exceeded allowed step count")

            run = program[pc]
            pc = self._execute_run(run, pc, program_length, jump_map, input_lines)
            steps += 1
            yield self._snapshot(pc, run, steps, program_length, tape_window)

        yield self._snapshot(pc, None, steps, program_length, tape_window)

    def _execute_run(
        self,
        run: Run,
        pc: int,
        program_length: int,
        jump_map: Dict[int, int],
        input_lines: Deque[bytes],
    ) -> int:
        new_pc = pc + 1
        kind = run.kind
        if kind is Command.MOVE_RIGHT:
            if self.pointer > self.max_index - run.count:
                raise PointerOutOfBounds("Right bound reached.")
            self.pointer += run.count
            if self.pointer >= len(self.tape):
                self.tape.extend([0] * (self.pointer + 1 - len(self.tape)))
        elif kind is Command.MOVE_LEFT:
            if self.pointer < run.count:
                raise PointerOutOfBounds("Left bound reached.")
            self.pointer -= run.count
        elif kind is Command.INC:
            self.tape[self.pointer] = (self.tape[self.pointer] + run.count) % 256
        elif kind is Command.DEC:
            self.tape[self.pointer] = (self.tape[self.pointer] - run.count) % 256
        elif kind is Command.WRITE:
            self.output_buffer.append(self.tape[self.pointer])
        elif kind is Command.READ:
            if not self._read_into_cell(input_lines):
                self.input_exhausted = True
                new_pc = program_length
        elif kind is Command.LOOP_START:
            if self.tape[self.pointer] == 0:
                new_pc = jump_map[pc] + 1
        elif kind is Command.LOOP_END:
            if self.tape[self.pointer] != 0:
                new_pc = jump_map[pc] + 1
        return new_pc

    def _read_into_cell(self, input_lines: Deque[bytes]) -> bool:
        if self._line_pos >= len(self._line_cache):
            if not input_lines:
                return False
            self._line_cache = input_lines.popleft()
            self._line_pos = 0
        self.tape[self.pointer] = self._line_cache[self._line_pos]
        self._line_pos += 1
        return True

    def _snapshot(
        self,
        pc: int,
        run: Optional[Run],
        step: int,
        program_length: int,
        tape_window: int,
    ) -> ExecutionState:
        start = max(0, self.pointer - tape_window)
        end = min(len(self.tape), self.pointer + tape_window + 1)
        return ExecutionState(
            step=step,
            pc=pc,
            command=run.kind.value if run else None,
            count=run.count if run else 0,
            pointer=self.pointer,
            tape_start=start,
            tape=self.tape[start:end].copy(),
            output=bytes(self.output_buffer),
            program_length=program_length,
        )

    def _build_jump_map(self, program: List[Run]) -> Dict[int, int]:
        # encode() has already rejected unbalanced brackets.
        jump_map: Dict[int, int] = {}
        stack: List[int] = []
        for index, run in enumerate(program):
            if run.kind is Command.LOOP_START:
                stack.append(index)
            elif run.kind is Command.LOOP_END:
                start = stack.pop()
                jump_map[start] = index
                jump_map[index] = start
        return jump_map


__all__ = [
    "BrainfuckInterpreter",
    "ExecutionState",
    "PointerOutOfBounds",
    "StepLimitExceeded",
]
