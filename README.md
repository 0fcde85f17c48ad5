# memsim

A command-line simulator of contiguous memory allocation. It reads a file of
process instructions, places each process in a simulated memory with the chosen
strategy, and after every step reports the runs of free memory (external
fragmentation) and, for the buddy system, the unused space inside allocated
blocks (internal fragmentation). Messages are printed in Portuguese.

## Strategies

- **Circular-fit** (`C` or `CIRCULAR`): next-fit over the list of partitions,
  resuming the search at the partition last allocated.
- **Worst-fit** (`W` or `WORST`): places a process in the largest free
  partition.
- **Buddy** (`B` or `BUDDY`): binary buddy system; each process gets the
  smallest power-of-two block that holds it, and freed buddies are merged.

Strategy names are case-insensitive.

## Instruction file

One instruction per line:

```
IN(A, 100)
IN(B, 30)
OUT(A)
IN(C, 200)
```

`IN(name, size)` allocates a process; `OUT(name)` frees it. A process must
appear in an `IN` before an `OUT` can name it. At the first line that is
neither, the simulator prints `Instrução inválida.` and runs only the
instructions read before it. A file with no instruction lines ends the program
with exit status 1.

## Usage

```
memsim -i instructions.txt -m 1024 -s buddy
```

The same can be run as `python -m memsim.cli ...`.

Options (each followed by its value):

- `-i FILE` — instruction file.
- `-m SIZE` — memory size; must be a positive power of two.
- `-s STRATEGY` — `C`, `W` or `B` (or the full names).
- `-d LEVEL` — debug output. Any non-zero level draws the memory blocks after
  each step (`█` allocated, `▓` unused part of a buddy block, `░` free);
  `2` also prints a hex dump of the memory contents; `3` also dumps the
  partition list or buddy tree nodes; `4` or more also lists the parsed
  processes and instructions before the run.

A missing file, an invalid memory size or an unknown strategy is asked for
interactively on standard input; if input ends, the program exits with status 1.

Sample output for one step, with `-m 1024 -s B`:

```
PROCESSO A: TAMANHO 100, INSERIDO NO ENDEREÇO 0x0000000 (0) - 0x000007F (127).
Frag. Ext.: |896|
Frag. Int.: |28|
```

## Library use

The allocators can also be used directly:

- `memsim.linked_list.MemoryList` — circular-fit and worst-fit over a list of
  partitions (`add_circular`, `add_worst`, `remove`, `free_fragments`,
  `format_fragments`, `dump`). Allocation and removal return the address, or
  `None` when there is no room or no such process.
- `memsim.buddy_tree.BuddyTree` — buddy system (`add`, `remove`, `find_node`,
  `leaves`, `free_fragments`, `internal_fragments`, `format_fragments`, `dump`).
- `memsim.instruction.parse_program` — turns instruction lines or a whole text
  into a `Program` of `Process` and `Instruction` records; it raises
  `InvalidInstructionError`, which carries what was read so far.
- `memsim.cli.Simulator` — runs a parsed program against a `Strategy` and
  returns the report as text (`execute`, `run`).
- `memsim.cli.partition_size`, `render_memory_blocks` and
  `render_memory_bytes` — the helpers behind the buddy block size and the debug
  drawings.

## Running the tests

```
pip install -e .[test]
pytest
```