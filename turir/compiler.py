from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, TextIO

from .errors import UnsupportedProgramError
from .program import Program, RunCmd

logger = logging.getLogger(__name__)

TAPE_SIZE = 256
PRINT_BUFFER_SIZE = 256

FIXED_STRINGS = (
    ("[", "bra"),
    ("]", "ket"),
    ("->", "rightarrow"),
    ("<-", "leftarrow"),
    ("^", "caret"),
    (" ", "space"),
    ("\n", "nl"),
    (" -- HALT -- ", "halted"),
)

STDOUT = 1
SYS_WRITE = 1
SYS_EXIT = 60


def _symbol_name(symbol: str) -> str:
    if symbol.isascii() and symbol.isalnum():
        return symbol
    return "x" + symbol.encode("utf-8").hex()


def trace_line_length(tape_length: int) -> int:
    """Bytes que escribe ``tape_print`` con la cabeza una celda más allá del final.

    Es la posición más lejana que puede alcanzar la cabeza al detenerse.
    """

    # "[ " + "c " por celda + "]\n", luego 2 * head + 2 espacios y "^\n", con head == tape_length.
    return (2 * tape_length + 4) + (2 * tape_length + 2) + 2


class Compiler:
    """Genera código FASM x86-64 que imprime la configuración inicial de una única corrida."""

    def __init__(self, tape_size: int = TAPE_SIZE, print_buffer_size: int = PRINT_BUFFER_SIZE) -> None:
        self.tape_size = tape_size
        self.print_buffer_size = print_buffer_size
        self.symbols: Dict[str, str] = {}
        self.lines: List[str] = []

    def validate(self, program: Program) -> RunCmd:
        """Comprueba las precondiciones del backend y devuelve la única corrida."""

        if len(program.runs) != 1:
            raise UnsupportedProgramError(
                f"the asm target supports exactly one #run directive, got {len(program.runs)}"
            )
        run = program.runs[0]
        for symbol in program.symbols():
            if len(symbol.encode("utf-8")) != 1:
                raise UnsupportedProgramError(
                    f"only one char symbols are supported for the asm target, got {symbol!r}"
                )
        if not run.tape:
            raise UnsupportedProgramError("tape cannot be empty")
        if len(run.tape) > self.tape_size:
            raise UnsupportedProgramError(
                f"tape of {len(run.tape)} cells does not fit the {self.tape_size} cell tape buffer"
            )
        needed = trace_line_length(len(run.tape))
        if needed > self.print_buffer_size:
            raise UnsupportedProgramError(
                f"tape of {len(run.tape)} cells needs a {needed} byte print buffer, "
                f"only {self.print_buffer_size} available"
            )
        return run

    def compile_program(self, program: Program) -> str:
        run = self.validate(program)
        self.symbols = {}
        self.lines = []

        self.emit("format ELF64")
        self.emit("")
        self.emit("section '.data' writeable")
        for text, name in FIXED_STRINGS:
            self.declare_string(text, name)
        for instruction in program.instructions:
            self.declare_string(instruction.state)
            self.declare_string(instruction.next_state)
            self.declare_string(instruction.read)
            self.declare_string(instruction.write)
        self.declare_string(run.state)
        for symbol in run.tape:
            self.declare_string(symbol)
        logger.debug("symbol table: %s", self.symbols)

        self.emit_static_buffers()

        self.emit("section '.text' executable")
        self.emit("public _start")
        self.emit("")
        self.emit("_start:")
        self.emit("    mov byte [head], 0")
        self.emit(f"    mov byte [state], {ord(run.state)}")
        self.emit_tape_init(run.tape)
        self.emit_print_addr("tape", len(run.tape))
        self.emit_print("\n")
        self.emit("    call tape_print")
        self.emit_print_addr("print_buf")
        self.emit_print("\n")
        self.emit_exit(0)
        self.emit_tape_print(len(run.tape))

        logger.info("compiled %s into %d line(s)", run, len(self.lines))
        return "\n".join(self.lines) + "\n"

    def write_program(self, program: Program, sink: TextIO) -> None:
        code = self.compile_program(program)
        sink.write(code)
        sink.flush()

    def emit(self, line: str) -> None:
        self.lines.append(line)

    def declare_string(self, text: str, name: Optional[str] = None) -> str:
        if text in self.symbols:
            return self.symbols[text]
        name = name or _symbol_name(text)
        data = ", ".join(str(byte) for byte in text.encode("utf-8"))
        self.emit(f"    str_{name}: db {data}")
        self.symbols[text] = name
        return name

    def emit_static_buffers(self) -> None:
        self.emit("")
        self.emit("section '.bss' writeable")
        self.emit("    head:      rb 1")
        self.emit("    state:     rb 1")
        self.emit(f"    tape:      rb {self.tape_size}")
        self.emit(f"    print_buf: rb {self.print_buffer_size}")
        self.emit("")

    def emit_tape_init(self, tape: Sequence[str]) -> None:
        self.emit("    ; initial tape")
        for index, symbol in enumerate(tape):
            self.emit(f"    mov byte [tape+{index}], {ord(symbol)}")

    def emit_write_syscall(self, comment: str) -> None:
        self.emit(f"    mov rdi, {STDOUT}\t\t; stdout")
        self.emit(f"    mov rax, {SYS_WRITE}\t\t; write syscall  {comment}")
        self.emit("    syscall")

    def emit_print(self, text: str) -> None:
        name = self.symbols[text]
        self.emit(f"    mov rdx, {len(text.encode('utf-8'))}")
        self.emit(f"    mov rsi, str_{name}")
        self.emit_write_syscall(f"str_{name}")

    def emit_print_addr(self, addr: str, length: Optional[int] = None) -> None:
        # Sin longitud, el número de bytes ya debe estar en rdx.
        if length is not None:
            self.emit(f"    mov rdx, {length}")
        self.emit(f"    mov rsi, {addr}")
        self.emit_write_syscall(addr)

    def emit_exit(self, status: int) -> None:
        self.emit("    ; exit")
        self.emit(f"    mov rax, {SYS_EXIT}")
        self.emit(f"    mov rdi, {status}")
        self.emit("    syscall")

    def emit_tape_print(self, length: int) -> None:
        """Rutina de impresión desenrollada para una cinta de ``length`` celdas.

        Llena ``print_buf`` con ``[ c c c ]``, un salto de línea y la línea del
        cursor para la cabeza actual, y devuelve el número de bytes en ``rdx``.
        """

        ket = 2 * length + 2
        after_nl = ket + 2
        self.emit("")
        self.emit("tape_print:")
        self.emit("    push rax")
        self.emit("    push rcx")
        self.emit(f"    mov byte [print_buf], {ord('[')}")
        self.emit(f"    mov byte [print_buf+1], {ord(' ')}")
        for index in range(length):
            offset = 2 * index + 2
            self.emit(f"    mov al, byte [tape+{index}]")
            self.emit(f"    mov byte [print_buf+{offset}], al")
            self.emit(f"    mov byte [print_buf+{offset + 1}], {ord(' ')}")
        self.emit(f"    mov byte [print_buf+{ket}], {ord(']')}")
        self.emit(f"    mov byte [print_buf+{ket + 1}], 10")
        self.emit("    movzx rcx, byte [head]")
        self.emit("    lea rcx, [rcx*2+2]")
        self.emit(f"    mov rdx, {after_nl}")
        self.emit(".pad:")
        self.emit(f"    mov byte [print_buf+rdx], {ord(' ')}")
        self.emit("    inc rdx")
        self.emit("    loop .pad")
        self.emit(f"    mov byte [print_buf+rdx], {ord('^')}")
        self.emit("    inc rdx")
        self.emit("    mov byte [print_buf+rdx], 10")
        self.emit("    inc rdx")
        self.emit("    pop rcx")
        self.emit("    pop rax")
        self.emit("    ret")
