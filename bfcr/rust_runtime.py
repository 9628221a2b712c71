"""Rust source fragments making up a generated program.

Every command maps to a statement template and, for the commands that need
one, to the helper function the statement calls.
"""

from __future__ import annotations

from typing import Dict, Optional

from .commands import Command, Run

PROLOGUE = """#[allow(unused_variables)]
#[allow(unused_mut)]
fn main() {
    let mut stdin_buf = String::new();
    let mut buf_p = 0usize;
    let mut v = init_cells();
    let mut i = 0usize;
    v.push(0);
"""

MAIN_CLOSE = "}\n"

INIT_CELLS_TEMPLATE = """fn init_cells() -> Vec<u8> {{
    Vec::<u8>::with_capacity({capacity})
}}
"""

STATEMENT_TEMPLATES: Dict[Command, str] = {
    Command.INC: "cinc(&mut v, i, {count});",
    Command.DEC: "cdec(&mut v, i, {count});",
    Command.MOVE_RIGHT: "pinc(&mut v, &mut i, {count});",
    Command.MOVE_LEFT: "pdec(&mut i, {count});",
    Command.READ: "if !rc(&mut v, i, &mut stdin_buf, &mut buf_p) {{return}};",
    Command.WRITE: "wc(v[i]);",
    Command.LOOP_START: "while v[i] != 0 {{",
    Command.LOOP_END: "}}",
}

HELPER_NAMES: Dict[Command, Optional[str]] = {
    Command.INC: "cinc",
    Command.DEC: "cdec",
    Command.MOVE_RIGHT: "pinc",
    Command.MOVE_LEFT: "pdec",
    Command.READ: "rc",
    Command.WRITE: "wc",
    Command.LOOP_START: None,
    Command.LOOP_END: None,
}

HELPER_SOURCES: Dict[Command, str] = {
    Command.INC: """
fn cinc(v: &mut Vec<u8>, i: usize, x: u8) {
    v[i] = v[i].wrapping_add(x);
}
""",
    Command.DEC: """
fn cdec(v: &mut Vec<u8>, i: usize, x: u8) {
    v[i] = v[i].wrapping_sub(x);
}
""",
    Command.MOVE_RIGHT: """
fn pinc(v: &mut Vec<u8>, i: &mut usize, x: usize) {
    if *i > usize::MAX - x {
        panic!("Right bound reached.");
    } else {
        *i += x;
        if *i >= v.len() {
            v.resize(1 + *i, 0);
        }
    }
}
""",
    Command.MOVE_LEFT: """
fn pdec(i: &mut usize, x: usize) {
    if *i < x {
        panic!("Left bound reached.");
    } else {
        *i -= x;
    }
}
""",
    Command.READ: """
use std::io::stdin;
fn rc(v: &mut Vec<u8>, i: usize, buf: &mut String, buf_p: &mut usize) -> bool {
    if *buf_p >= buf.len() {
        buf.clear();
        stdin().read_line(buf).expect("Couldn't read from stdin.");
        if buf.is_empty() {
            return false;
        }
        *buf_p = 0;
    }
    v[i] = buf.as_bytes()[*buf_p];
    *buf_p += 1;
    true
}
""",
    Command.WRITE: """
use std::io::{Write, stdout};
fn wc(c: u8) {
    stdout().write_all(&[c]).expect("Couldn't write to stdout.");
}
""",
    # Loops compile to a native `while`, no helper needed.
    Command.LOOP_START: "",
    Command.LOOP_END: "",
}


def render_statement(run: Run) -> str:
    count = run.count
    if run.kind in (Command.INC, Command.DEC):
        # Helpers take a u8; adding n is the same as adding n mod 256.
        count %= 256
    return STATEMENT_TEMPLATES[run.kind].format(count=count)


def render_init_cells(capacity: int) -> str:
    return INIT_CELLS_TEMPLATE.format(capacity=capacity)


__all__ = [
    "HELPER_NAMES",
    "HELPER_SOURCES",
    "MAIN_CLOSE",
    "PROLOGUE",
    "STATEMENT_TEMPLATES",
    "render_init_cells",
    "render_statement",
]
