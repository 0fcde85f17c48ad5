"""Instruction files: processes entering (IN) and leaving (OUT) memory."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import takewhile
from typing import Iterable, Iterator

LINE_BUFFER = 32

# IN(name,size): a prefix, an opening bracket, the name up to a comma, then an integer.
_ALLOC_RE = re.compile(r"[^'(]+['(]([^',]+)[',]\s*([+-]?\d+)", re.S)
# OUT(name): a prefix, an opening bracket, the name up to the closing bracket.
_FREE_RE = re.compile(r"[^'(]+['(]([^')]+)", re.S)
# Lines are read in pieces no longer than the line buffer allows.
_CHUNK_RE = re.compile(r".{1,%d}" % (LINE_BUFFER - 1), re.S)


class Operation(IntEnum):
    """What an instruction does, and the state of a memory block."""

    ERROR = -1
    DISALLOC = 0
    ALLOC = 1
    UNUSED = 2


@dataclass(frozen=True)
class Instruction:
    """One step of a program: a process entering or leaving memory."""

    pid: int
    operation: Operation


@dataclass
class Process:
    """A named process and the size it requests."""

    pid: int
    size: int
    name: str


@dataclass
class Program:
    """The processes and instructions read from an instruction file."""

    processes: list[Process] = field(default_factory=list)
    instructions: list[Instruction] = field(default_factory=list)

    def _process(self, pid: int) -> Process | None:
        return next((p for p in self.processes if p.pid == pid), None)

    def find_pid(self, name: str) -> int | None:
        """Return the pid of the process called ``name``, or None."""
        return next((p.pid for p in self.processes if p.name == name), None)

    def name_of(self, pid: int) -> str:
        """Return the name of process ``pid``, or an empty string."""
        process = self._process(pid)
        return process.name if process is not None else ""

    def size_of(self, pid: int) -> int:
        """Return the size of process ``pid``, or 0."""
        process = self._process(pid)
        return process.size if process is not None else 0


class InvalidInstructionError(ValueError):
    """Raised for a line that is neither a valid IN nor a valid OUT.

    ``program`` holds what was read before the offending line.
    """

    def __init__(self, line: str, program: Program) -> None:
        super().__init__(f"invalid instruction: {line!r}")
        self.line = line
        self.program = program


def count_lines(text: str) -> int:
    """Count instruction lines: lines of more than one character, plus a
    non-empty final line without a line break."""
    *complete, last = text.split("\n")
    return sum(1 for line in complete if len(line) > 1) + (1 if last else 0)


def _is_letter(char: str) -> bool:
    return char.isascii() and char.isalpha()


def count_processes(text: str) -> int:
    """Count the distinct process names that follow an opening bracket."""
    chars = iter(text)
    names: set[str] = set()
    for char in chars:
        if char == "(":
            name = "".join(takewhile(_is_letter, chars))
            if name:
                names.add(name)
    return len(names)


def _chunks(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield from _CHUNK_RE.findall(line)


def parse_program(lines: Iterable[str] | str) -> Program:
    """Read instructions from ``lines`` (or a whole text).

    Raises InvalidInstructionError at the first line that cannot be read,
    or that removes a process never seen before.
    """
    if isinstance(lines, str):
        lines = lines.splitlines(keepends=True)

    program = Program()
    for chunk in _chunks(lines):
        if match := _ALLOC_RE.match(chunk):
            name, size = match.group(1), int(match.group(2))
            pid = program.find_pid(name)
            if pid is None:
                pid = len(program.processes)
                program.processes.append(Process(pid=pid, size=size, name=name))
            else:
                program.processes[pid].size = size
            program.instructions.append(Instruction(pid, Operation.ALLOC))
            continue

        if match := _FREE_RE.match(chunk):
            pid = program.find_pid(match.group(1))
            if pid is None:
                raise InvalidInstructionError(chunk, program)
            program.instructions.append(Instruction(pid, Operation.DISALLOC))
            continue

        raise InvalidInstructionError(chunk, program)

    return program