from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .lexer import TokenKind, is_symbol_char

DEFAULT_HALT_STATE = "HALT"


def quote_symbol(symbol: str) -> str:
    """Devuelve el símbolo tal como debe escribirse en el código fuente."""

    # Un símbolo desnudo que empieza por "#" o "//" se leería como directiva o comentario.
    if symbol and not symbol.startswith(("#", "//")) and all(is_symbol_char(ch) for ch in symbol):
        return symbol
    if "'" in symbol or "\n" in symbol:
        raise ValueError(f"symbol {symbol!r} cannot be written as turir source")
    return f"'{symbol}'"


class Direction(Enum):
    LEFT = "<-"
    RIGHT = "->"

    @property
    def offset(self) -> int:
        return -1 if self is Direction.LEFT else 1

    @classmethod
    def from_arrow(cls, kind: TokenKind) -> "Direction":
        if kind is TokenKind.LEFT_ARROW:
            return cls.LEFT
        if kind is TokenKind.RIGHT_ARROW:
            return cls.RIGHT
        raise ValueError(f"{kind.label} is not an arrow")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Instruction:
    """Regla de transición ``estado lectura escritura dirección siguiente``."""

    state: str
    read: str
    write: str
    direction: Direction
    next_state: str

    def __str__(self) -> str:
        return f"{self.state} {self.read} {self.write} {self.direction} {self.next_state}"

    def to_source(self) -> str:
        """Línea de código fuente que, al analizarse de nuevo, produce la misma regla."""

        state, read, write, next_state = (
            quote_symbol(value)
            for value in (self.state, self.read, self.write, self.next_state)
        )
        return f"{state} {read} {write} {self.direction} {next_state}"


@dataclass(frozen=True)
class RunCmd:
    """Cinta inicial y estado de arranque de una directiva ``#run``."""

    tape: Tuple[str, ...]
    state: str

    def __str__(self) -> str:
        return f"#run [ {' '.join(self.tape)} ] {self.state}"

    def to_source(self) -> str:
        cells = " ".join(quote_symbol(symbol) for symbol in self.tape)
        return f"#run [ {cells} ] {quote_symbol(self.state)}"


@dataclass(frozen=True)
class HaltCmd:
    states: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Program:
    """Programa analizado. Lo construye el parser una sola vez y después es de solo lectura."""

    instructions: Tuple[Instruction, ...] = ()
    runs: Tuple[RunCmd, ...] = ()
    halt_states: Tuple[str, ...] = (DEFAULT_HALT_STATE,)
    _index: Dict[Tuple[str, str], Instruction] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "instructions", tuple(self.instructions))
        object.__setattr__(self, "runs", tuple(self.runs))
        object.__setattr__(self, "halt_states", tuple(self.halt_states) or (DEFAULT_HALT_STATE,))
        for instruction in self.instructions:
            # Ante pares (estado, lectura) repetidos gana la primera regla declarada.
            self._index.setdefault((instruction.state, instruction.read), instruction)

    def is_halt_state(self, state: str) -> bool:
        return state in self.halt_states

    def find_instruction(self, state: str, read: str) -> Optional[Instruction]:
        return self._index.get((state, read))

    def symbols(self) -> List[str]:
        """Todos los símbolos distintos de las reglas y las cintas, en orden de aparición."""

        seen: Dict[str, None] = {}
        for instruction in self.instructions:
            for value in (
                instruction.state,
                instruction.read,
                instruction.write,
                instruction.next_state,
            ):
                seen.setdefault(value, None)
        for run in self.runs:
            seen.setdefault(run.state, None)
            for value in run.tape:
                seen.setdefault(value, None)
        return list(seen)
