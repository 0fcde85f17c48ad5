"""Command line simulator: runs an instruction file against a memory strategy."""

from __future__ import annotations

import random
import re
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence

from memsim.buddy_tree import BuddyTree
from memsim.instruction import (
    Instruction,
    InvalidInstructionError,
    Operation,
    Program,
    count_lines,
    parse_program,
)
from memsim.linked_list import MemoryList

_SIZE_MASK = (1 << 64) - 1
_ATOI_RE = re.compile(r"\s*([+-]?\d+)")

_BLOCK_GLYPHS = {1: "█", 2: "▓"}
_FREE_GLYPH = "░"


class Strategy(IntEnum):
    """How processes are placed in memory."""

    CIRCULAR = 1
    WORST = 2
    BUDDY = 3


class BlockState(IntEnum):
    """The state of one unit of simulated memory."""

    FREE = 0
    ALLOCATED = 1
    UNUSED = 2


_STRATEGY_NAMES = {
    "C": Strategy.CIRCULAR,
    "CIRCULAR": Strategy.CIRCULAR,
    "W": Strategy.WORST,
    "WORST": Strategy.WORST,
    "B": Strategy.BUDDY,
    "BUDDY": Strategy.BUDDY,
}


def parse_strategy(text: str) -> Strategy:
    """Read a strategy name or its initial, in any case."""
    try:
        return _STRATEGY_NAMES[text.upper()]
    except KeyError:
        raise ValueError(f"unknown strategy: {text!r}") from None


def partition_size(process_size: int) -> int:
    """The smallest power of two that holds ``process_size``."""
    return 1 << (max(process_size * 2 - 1, 1).bit_length() - 1)


def _hex_address(value: int) -> str:
    return f"0x{value & _SIZE_MASK:07X}"


def render_memory_blocks(blocks: Sequence[int]) -> str:
    """Draw memory as rows of 64 blocks, each row headed by its address."""
    rows = []
    for offset in range(0, len(blocks), 64):
        row = blocks[offset:offset + 64]
        glyphs = "".join(_BLOCK_GLYPHS.get(int(state), _FREE_GLYPH) for state in row)
        rows.append(f"{_hex_address(offset * 256)} {glyphs}")
    return "\n".join(rows)


def render_memory_bytes(data: bytes | bytearray) -> str:
    """Hex dump of memory, 32 bytes a row, each row headed by its address."""
    rows = []
    for offset in range(0, len(data), 32):
        row = data[offset:offset + 32]
        rows.append(_hex_address(offset * 256) + "".join(f" {byte:02X}" for byte in row))
    return "\n".join(rows)


def _is_valid_memory_size(size: int) -> bool:
    return size > 0 and size & (size - 1) == 0


@dataclass
class Simulator:
    """Runs a program's instructions against one memory strategy."""

    program: Program
    memory_size: int
    strategy: Strategy
    debug: int = 0
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        if not _is_valid_memory_size(self.memory_size):
            raise ValueError(f"memory size must be a positive power of 2: {self.memory_size}")
        self.blocks: list[BlockState] = [BlockState.FREE] * self.memory_size
        self.data = bytearray(self.memory_size)
        self.manager: MemoryList | BuddyTree
        if self.strategy is Strategy.BUDDY:
            self.manager = BuddyTree(self.memory_size)
        else:
            self.manager = MemoryList(self.memory_size)

    def _mark(self, start: int, stop: int, state: BlockState) -> None:
        span = len(self.blocks[start:stop]) if start < stop else 0
        if span:
            self.blocks[start:start + span] = [state] * span

    def _partition_end(self, start: int, process_size: int) -> int:
        if self.strategy is Strategy.BUDDY:
            return start + partition_size(process_size) - 1
        return start + process_size - 1

    @staticmethod
    def _span(start: int, end: int) -> str:
        return f"{_hex_address(start)} ({start}) - {_hex_address(end)} ({end & _SIZE_MASK})"

    def execute(self, instruction: Instruction) -> str:
        """Carry out one instruction and return the line that reports it."""
        pid = instruction.pid
        size = self.program.size_of(pid)
        name = self.program.name_of(pid)

        if instruction.operation == Operation.ALLOC:
            if self.strategy is Strategy.CIRCULAR:
                address = self.manager.add_circular(pid, size)
            elif self.strategy is Strategy.WORST:
                address = self.manager.add_worst(pid, size)
            else:
                address = self.manager.add(pid, size)

            if address is None:
                return (
                    f"PROCESSO {name}: TAMANHO {size}, NÃO ALOCADO. "
                    "ESPAÇO INSUFICIENTE DE MEMÓRIA."
                )
            end_process = address + size
            span = len(self.data[address:end_process]) if size > 0 else 0
            if span:
                self.data[address:address + span] = self.rng.randbytes(span)
            self._mark(address, end_process, BlockState.ALLOCATED)
            end_partition = self._partition_end(address, size)
            if self.strategy is Strategy.BUDDY:
                self._mark(end_process, end_partition + 1, BlockState.UNUSED)
            return (
                f"PROCESSO {name}: TAMANHO {size}, INSERIDO NO ENDEREÇO "
                f"{self._span(address, end_partition)}."
            )

        if self.strategy is Strategy.BUDDY:
            address = self.manager.remove(pid, size)
        else:
            address = self.manager.remove(pid)

        if address is None:
            return f"PROCESSO {name}: TAMANHO {size}, NÃO ENCONTRADO PARA REMOÇÃO."
        end_partition = self._partition_end(address, size)
        self._mark(address, max(address + size, end_partition + 1), BlockState.FREE)
        return (
            f"PROCESSO {name}: TAMANHO {size}, REMOVIDO DO ENDEREÇO "
            f"{self._span(address, end_partition)}."
        )

    def format_fragments(self) -> str:
        """Report the free fragments held by the memory manager."""
        return self.manager.format_fragments()

    def _memory_report(self) -> str:
        if not self.debug:
            return ""
        report = render_memory_blocks(self.blocks) + "\n"
        if self.debug == 2:
            report += render_memory_bytes(self.data) + "\n"
        return report

    def run(self) -> str:
        """Execute every instruction and return the full report."""
        out: list[str] = []
        if self.debug > 3:
            out.extend(
                f"proc_name: {p.name}, size: {p.size}\n" for p in self.program.processes
            )
            out.extend(
                f"instruction_type: {int(i.operation)}, pid: {i.pid}\n"
                for i in self.program.instructions
            )

        out.append(self.format_fragments() + "\n")
        out.append(self._memory_report())
        out.append("\n")

        for instruction in self.program.instructions:
            out.append(self.execute(instruction) + "\n")
            out.append(self.format_fragments() + "\n")
            out.append(self._memory_report())
            if self.debug == 3:
                out.append("\n" + self.manager.dump() + "\n")
            out.append("\n")

        self.blocks = [BlockState.FREE] * self.memory_size
        self.manager.clear()
        return "".join(out)


def _atoi(text: str) -> int:
    match = _ATOI_RE.match(text)
    return int(match.group(1)) if match else 0


def _read_text(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            return handle.read()
    except OSError:
        return None


def _read_token(prompt: str) -> str:
    print(prompt, end="", flush=True)
    while True:
        line = sys.stdin.readline()
        if not line:
            raise EOFError
        tokens = line.split()
        if tokens:
            print()
            return tokens[0]


def _strategy_or_none(text: str) -> Strategy | None:
    try:
        return parse_strategy(text)
    except ValueError:
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Run the simulator from the command line; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)

    text: str | None = None
    memory_size = 0
    strategy: Strategy | None = None
    debug = 0

    for flag, value in zip(args, args[1:]):
        if flag == "-i":
            text = _read_text(value)
        elif flag == "-m":
            memory_size = _atoi(value)
        elif flag == "-s":
            strategy = _strategy_or_none(value)
        elif flag == "-d":
            debug = _atoi(value) & 0xFF

    try:
        while text is None:
            print("Arquivo não encontrado")
            text = _read_text(_read_token("Digite o nome do arquivo de instruções: "))

        while not _is_valid_memory_size(memory_size):
            if memory_size <= 0:
                print("Memória não pode ser menor ou igual a 0.")
            else:
                print("Memória não é potência de 2.")
            memory_size = _atoi(_read_token("Digite o valor do tamanho da memória: "))

        while strategy is None:
            print("Estratégia não encontrada.")
            strategy = _strategy_or_none(_read_token("Digite o nome da estratégia: "))
    except EOFError:
        return 1

    if count_lines(text) == 0:
        print("Arquivo vazio.\nEncerrando programa...")
        return 1

    try:
        program = parse_program(text)
    except InvalidInstructionError as error:
        print("Instrução inválida.\nEncerrando programa...")
        program = error.program

    simulator = Simulator(program, memory_size, strategy, debug=debug)
    print(simulator.run(), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())