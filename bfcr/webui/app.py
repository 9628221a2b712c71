from __future__ import annotations

import io
from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field, validator

from bfcr.bf_interpreter import BrainfuckInterpreter, PointerOutOfBounds, StepLimitExceeded
from bfcr.commands import MAX_INDEX
from bfcr.transpiler import BrainfuckTranspiler, ParseError, split_lines

# Exit status of a Rust program that panicked.
PANIC_EXIT_STATUS = 101
MAX_RUN_STEPS = 10_000_000


def _parse_error_detail(exc: ParseError) -> dict:
    return {
        "kind": exc.kind,
        "message": exc.message,
        "line": exc.line,
        "column": exc.column,
    }


class TranslateRequest(BaseModel):
    source: str
    initial_cells: Optional[int] = Field(default=None, ge=0, le=MAX_INDEX)


class TranslateResponse(BaseModel):
    code: str
    initial_cells: int
    helpers: List[str]
    statement_count: int


class RunRequest(BaseModel):
    source: str
    input: str = ""
    max_steps: int = Field(default=100_000, ge=1, le=MAX_RUN_STEPS)

    @validator("input")
    def validate_input(cls, value: str) -> str:
        try:
            value.encode("latin-1")
        except UnicodeEncodeError as exc:
            raise ValueError("input must only contain byte-sized characters") from exc
        return value


class RunResponse(BaseModel):
    output: str
    steps: int
    exit_status: int
    aborted: bool
    input_exhausted: bool
    message: Optional[str] = None


def create_app() -> FastAPI:
    app = FastAPI(title="bfcr API", version="0.1.0")

    @app.post("/api/translate", response_model=TranslateResponse)
    def translate(payload: TranslateRequest) -> TranslateResponse:
        transpiler = BrainfuckTranspiler()
        buffer = io.StringIO()
        try:
            result = transpiler.translate_stream(
                split_lines(payload.source),
                buffer,
                initial_cells=payload.initial_cells,
            )
        except ParseError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=_parse_error_detail(exc),
            ) from exc
        return TranslateResponse(
            code=buffer.getvalue(),
            initial_cells=result.initial_cells,
            helpers=result.helpers,
            statement_count=result.statement_count,
        )

    @app.post("/api/run", response_model=RunResponse)
    def run(payload: RunRequest) -> RunResponse:
        interpreter = BrainfuckInterpreter()
        steps = 0
        try:
            for state in interpreter.step(
                payload.source,
                input_data=payload.input.encode("latin-1"),
                max_steps=payload.max_steps,
                tape_window=0,
            ):
                steps = state.step
        except ParseError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=_parse_error_detail(exc),
            ) from exc
        except StepLimitExceeded as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except PointerOutOfBounds as exc:
            return RunResponse(
                output=interpreter.output_buffer.decode("latin-1"),
                steps=steps,
                exit_status=PANIC_EXIT_STATUS,
                aborted=True,
                input_exhausted=False,
                message=str(exc),
            )
        return RunResponse(
            output=interpreter.output_buffer.decode("latin-1"),
            steps=steps,
            exit_status=0,
            aborted=False,
            input_exhausted=interpreter.input_exhausted,
        )

    return app


__all__ = ["create_app"]
