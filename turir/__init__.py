import logging

from .compiler import Compiler
from .config_loader import TurirConfig, load_config
from .errors import (
    ConfigError,
    MachineError,
    ParseError,
    SourceError,
    StepLimitExceeded,
    TapeBoundsError,
    TurirError,
    UndefinedTransitionError,
    UnknownCommandError,
    UnsupportedProgramError,
)
from .lexer import Lexer, Location, Token, TokenKind
from .machine import Interpreter, Machine, RunResult, TraceStep, format_tape
from .parser import Parser, parse_source
from .program import DEFAULT_HALT_STATE, Direction, HaltCmd, Instruction, Program, RunCmd

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Compiler",
    "TurirConfig",
    "load_config",
    "ConfigError",
    "MachineError",
    "ParseError",
    "SourceError",
    "StepLimitExceeded",
    "TapeBoundsError",
    "TurirError",
    "UndefinedTransitionError",
    "UnknownCommandError",
    "UnsupportedProgramError",
    "Lexer",
    "Location",
    "Token",
    "TokenKind",
    "Interpreter",
    "Machine",
    "RunResult",
    "TraceStep",
    "format_tape",
    "Parser",
    "parse_source",
    "DEFAULT_HALT_STATE",
    "Direction",
    "HaltCmd",
    "Instruction",
    "Program",
    "RunCmd",
]
