from __future__ import annotations

import logging
from typing import List, Union

from .errors import ParseError, UnknownCommandError
from .lexer import Lexer, Token, TokenKind
from .program import HaltCmd, Instruction, Program, RunCmd, Direction

logger = logging.getLogger(__name__)

SYMBOL = TokenKind.SYMBOL
CMD = TokenKind.CMD


class Parser:
    """Parser descendente recursivo con un solo token de anticipación."""

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer

    def peek_token(self) -> Token:
        return self.lexer.peek_token()

    def skip_token(self) -> None:
        self.lexer.next_token()

    def expect_token(self, *kinds: TokenKind) -> Token:
        token = self.lexer.next_token()
        if token.kind not in kinds:
            raise ParseError(kinds, token)
        logger.debug("%s: %s %r", token.location, token.kind.label, token.text)
        return token

    def parse_instruction(self) -> Instruction:
        state = self.expect_token(SYMBOL).text
        read = self.expect_token(SYMBOL).text
        write = self.expect_token(SYMBOL).text
        arrow = self.expect_token(TokenKind.LEFT_ARROW, TokenKind.RIGHT_ARROW)
        next_state = self.expect_token(SYMBOL).text
        self.expect_token(TokenKind.NEW_LINE)
        return Instruction(
            state=state,
            read=read,
            write=write,
            direction=Direction.from_arrow(arrow.kind),
            next_state=next_state,
        )

    def parse_run(self) -> RunCmd:
        self.expect_token(CMD)
        self.expect_token(TokenKind.BRA)
        tape: List[str] = []
        while True:
            token = self.expect_token(SYMBOL, TokenKind.KET)
            if token.kind is TokenKind.KET:
                break
            tape.append(token.text)
        state = self.expect_token(SYMBOL).text
        self.expect_token(TokenKind.NEW_LINE)
        return RunCmd(tape=tuple(tape), state=state)

    def parse_halt(self) -> HaltCmd:
        self.expect_token(CMD)
        states: List[str] = []
        while True:
            token = self.expect_token(TokenKind.NEW_LINE, SYMBOL)
            if token.kind is TokenKind.NEW_LINE:
                break
            states.append(token.text)
        return HaltCmd(states=tuple(states))

    def parse_program(self) -> Program:
        instructions: List[Instruction] = []
        runs: List[RunCmd] = []
        halt = HaltCmd()

        while True:
            token = self.peek_token()
            if token.kind is TokenKind.EOF:
                break
            if token.kind is CMD:
                if token.text == "#run":
                    runs.append(self.parse_run())
                elif token.text == "#halt":
                    halt = self.parse_halt()
                else:
                    raise UnknownCommandError(token)
            elif token.kind is SYMBOL:
                instructions.append(self.parse_instruction())
            elif token.kind is TokenKind.NEW_LINE:
                self.skip_token()
            else:
                raise ParseError((SYMBOL, CMD), token)

        program = Program(instructions=instructions, runs=runs, halt_states=halt.states)
        logger.debug(
            "parsed %d instruction(s), %d run(s), halt states %s",
            len(program.instructions),
            len(program.runs),
            ", ".join(program.halt_states),
        )
        return program


def parse_source(source: Union[str, bytes], filename: str = "<string>") -> Program:
    """Analiza un código fuente completo de turir y devuelve un :class:`Program`."""

    return Parser(Lexer(source, filename)).parse_program()
