from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .bf_interpreter import BrainfuckInterpreter, PointerOutOfBounds
from .commands import MAX_INDEX
from .toolchain import CompileError, ToolchainOptions, compile_rust, executable_path_for
from .transpiler import BrainfuckTranspiler, ParseError

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.is_file():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _write_output(path: Path, data: str) -> None:
    path.write_text(data, encoding="utf-8")


def _cell_count(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{value}'") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {number}")
    if number > MAX_INDEX:
        raise argparse.ArgumentTypeError(f"expected at most {MAX_INDEX}, got {number}")
    return number


def output_path_for(source: str, output: Optional[str] = None) -> Path:
    """``-o NAME`` gives ``NAME.rs``; otherwise ``prog.bf`` becomes ``prog.rs``."""
    if output is not None:
        return Path(output + ".rs")
    if source.endswith(".bf"):
        source = source[: -len(".bf")]
    return Path(source + ".rs")


def _format_parse_error(exc: ParseError) -> str:
    if exc.line is None:
        return exc.message
    return f"{exc.message} (line {exc.line}, column {exc.column})"


def _write_program_output(data: bytes) -> None:
    stream = getattr(sys.stdout, "buffer", None)
    if stream is not None:
        sys.stdout.flush()
        stream.write(data)
        stream.flush()
    else:
        sys.stdout.write(data.decode("latin-1"))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfcr",
        description=(
            "Compile Brainfuck into Rust. By default a '.rs' file is generated and "
            "then handed to rustc. An existing output file is always overwritten."
        ),
    )
    parser.add_argument("source", nargs="?", help="Path to the Brainfuck source file")
    parser.add_argument(
        "-c",
        "--compile",
        action="store_true",
        help="Only generate the Rust source, do not invoke the compiler",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Name of the output file(s); '.rs' is appended automatically",
    )
    parser.add_argument(
        "-ic",
        "--initial-cells",
        type=_cell_count,
        help="Initial number of cells (default: the number of '>' in the source)",
    )
    parser.add_argument(
        "-b",
        dest="flags",
        action="append",
        default=[],
        metavar="FLAGS",
        help="Flags passed to the Rust compiler, split on whitespace (use -b=-g for a single dash flag)",
    )
    parser.add_argument(
        "-cmd",
        dest="cmd",
        default="rustc",
        help="Path to the Rust compiler or the command to invoke it (default: rustc)",
    )
    parser.add_argument(
        "-opt",
        dest="opt",
        default="2",
        help="Optimization level passed as -C opt-level (default: 2)",
    )
    parser.add_argument(
        "--run",
        action="store_true",
        help="Interpret the program directly instead of generating Rust",
    )
    parser.add_argument(
        "--input",
        help="Input supplied to the program when used with --run (default: read stdin)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _read_program_input(input_text: Optional[str]) -> bytes:
    if input_text is not None:
        return input_text.encode("utf-8")
    stream = getattr(sys.stdin, "buffer", None)
    if stream is not None:
        return stream.read()
    return sys.stdin.read().encode("utf-8")


def _run_program(source_text: str, input_data: bytes) -> int:
    interpreter = BrainfuckInterpreter()
    try:
        interpreter.run(source_text, input_data=input_data)
    except ParseError as exc:
        print(_format_parse_error(exc), file=sys.stderr)
        return 1
    except PointerOutOfBounds as exc:
        _write_program_output(bytes(interpreter.output_buffer))
        print(f"Runtime error: {exc}", file=sys.stderr)
        return 1
    _write_program_output(bytes(interpreter.output_buffer))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(message)s")

    if args.source is None:
        parser.print_help()
        return 0

    try:
        source_text = _read_source(args.source)
    except (OSError, UnicodeDecodeError):
        print(f"[Error] Cannot open '{args.source}'.", file=sys.stderr)
        return 1

    if args.run:
        return _run_program(source_text, _read_program_input(args.input))

    transpiler = BrainfuckTranspiler()
    try:
        rust_code = transpiler.translate(source_text, initial_cells=args.initial_cells)
    except ParseError as exc:
        print(_format_parse_error(exc), file=sys.stderr)
        return 1

    output_path = output_path_for(args.source, args.output)
    try:
        _write_output(output_path, rust_code)
    except OSError:
        print(f"[Error] Cannot create '{output_path}'.", file=sys.stderr)
        return 1
    logger.debug("wrote %s", output_path)

    if args.compile:
        return 0

    options = ToolchainOptions(command=args.cmd, opt_level=args.opt)
    for raw_flags in args.flags:
        options.add_flags(raw_flags)
    try:
        compile_rust(output_path, executable_path_for(output_path), options)
    except CompileError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
