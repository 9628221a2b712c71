from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CompileError(Exception):
    def __init__(self, message: str, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        self.returncode = returncode


@dataclass
class ToolchainOptions:
    command: str = "rustc"
    opt_level: str = "2"
    flags: List[str] = field(default_factory=list)

    def add_flags(self, raw: str) -> None:
        """Append whitespace separated compiler flags, e.g. ``"-g --edition 2021"``."""
        self.flags.extend(raw.split())


def executable_path_for(source_path: PathLike) -> Path:
    return Path(source_path).with_suffix("")


def build_command(
    source_path: PathLike,
    output_path: Optional[PathLike] = None,
    options: Optional[ToolchainOptions] = None,
) -> List[str]:
    opts = options or ToolchainOptions()
    command = [opts.command, *opts.flags, "-C", f"opt-level={opts.opt_level}", str(source_path)]
    if output_path is not None:
        command.extend(["-o", str(output_path)])
    return command


def compile_rust(
    source_path: PathLike,
    output_path: Optional[PathLike] = None,
    options: Optional[ToolchainOptions] = None,
) -> Path:
    """Compile a generated ``.rs`` file and return the executable path."""
    opts = options or ToolchainOptions()
    executable = Path(output_path) if output_path is not None else executable_path_for(source_path)
    command = build_command(source_path, executable, opts)
    logger.debug("running: %s", shlex.join(command))
    try:
        result = subprocess.run(command, check=False)
    except OSError as exc:
        raise CompileError(f"Failed to execute the command '{opts.command}'.") from exc
    if result.returncode != 0:
        raise CompileError(f"Failed to compile '{source_path}'.", returncode=result.returncode)
    logger.debug("-> %s", executable)
    return executable


__all__ = [
    "CompileError",
    "ToolchainOptions",
    "build_command",
    "compile_rust",
    "executable_path_for",
]
