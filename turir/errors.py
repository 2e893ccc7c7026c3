from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from .lexer import Token, TokenKind


class TurirError(Exception):
    """Clase base de todos los errores de turir."""


class SourceError(TurirError):
    """El archivo fuente no se puede leer o decodificar."""


class ParseError(TurirError):
    """Un token no coincide con ninguno de los tipos aceptados en su posición."""

    def __init__(self, expected: Sequence[TokenKind], got: Token) -> None:
        self.expected = tuple(expected)
        self.got = got
        super().__init__(self._render())

    @property
    def location(self):
        return self.got.location

    def _render(self) -> str:
        expected = " or ".join(kind.label for kind in self.expected)
        return f"{self.got.location}: Expected {expected} but got {self.got.describe()}"


class UnknownCommandError(TurirError):
    """Directiva distinta de ``#run`` o ``#halt``."""

    def __init__(self, token: Token) -> None:
        self.token = token
        super().__init__(
            f"{token.location}: Unknown command {token.text!r}, expected #run or #halt"
        )

    @property
    def location(self):
        return self.token.location


class MachineError(TurirError):
    """Clase base de los errores del intérprete en tiempo de ejecución."""


class UndefinedTransitionError(MachineError):
    def __init__(self, state: str, symbol: str) -> None:
        self.state = state
        self.symbol = symbol
        super().__init__(f"State '{state}' and read '{symbol}' combination is not defined")


class TapeBoundsError(MachineError):
    def __init__(self, state: str, step: int) -> None:
        self.state = state
        self.step = step
        super().__init__(f"Head moved left of the first tape cell at step {step} (state '{state}')")


class StepLimitExceeded(MachineError):
    def __init__(self, max_steps: int, state: str) -> None:
        self.max_steps = max_steps
        self.state = state
        super().__init__(f"Step limit of {max_steps} reached without halting (state '{state}')")


class UnsupportedProgramError(TurirError):
    """El programa usa algo que el backend de ensamblador no puede expresar."""


class ConfigError(TurirError, ValueError):
    """Archivo de configuración inválido."""
