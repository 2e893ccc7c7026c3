from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, TextIO

from .errors import StepLimitExceeded, TapeBoundsError, UndefinedTransitionError
from .program import Instruction, Program, RunCmd

logger = logging.getLogger(__name__)


def format_tape(cells: Sequence[str], head: int) -> str:
    """Dibuja la cinta seguida de una línea con el cursor bajo la cabeza."""

    return f"[ {' '.join(cells)} ]\n  {'  ' * head}^\n"


@dataclass
class TraceStep:
    """Configuración justo antes de aplicar una instrucción."""

    step: int
    instruction: Instruction
    tape: List[str]
    head: int

    def format(self) -> str:
        return f"{self.instruction}\n{format_tape(self.tape, self.head)}"

    def to_dict(self) -> Dict:
        return {
            "step": self.step,
            "instruction": str(self.instruction),
            "tape": list(self.tape),
            "head": self.head,
        }


@dataclass
class RunResult:
    """Resultado de una directiva ``#run``."""

    run: RunCmd
    final_state: str
    tape: List[str]
    head: int
    steps: int
    history: List[TraceStep] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "run": str(self.run),
            "final_state": self.final_state,
            "tape": list(self.tape),
            "head": self.head,
            "steps": self.steps,
            "history": [step.to_dict() for step in self.history],
        }


class Tape:
    """Cinta que sólo crece hacia la derecha, rellenando con un símbolo fijo."""

    def __init__(self, initial: Sequence[str]) -> None:
        if not initial:
            raise ValueError("tape cannot be empty")
        self.cells: List[str] = list(initial)
        # Se toma una sola vez de la cinta inicial, nunca de la cinta modificada.
        self.filler = self.cells[-1]

    def read(self, position: int) -> str:
        return self.cells[position]

    def write(self, position: int, symbol: str) -> None:
        self.cells[position] = symbol

    def reach(self, position: int) -> None:
        if position >= len(self.cells):
            self.cells.append(self.filler)


class Machine:
    """Máquina determinista de una cinta que ejecuta una corrida del programa."""

    def __init__(self, program: Program, run: RunCmd) -> None:
        self.program = program
        self.run = run
        self.tape = Tape(run.tape)
        self.state = run.state
        self.head = 0
        self.steps = 0
        self.halted = False

    def current_symbol(self) -> str:
        return self.tape.read(self.head)

    def lookup(self) -> Instruction:
        symbol = self.current_symbol()
        instruction = self.program.find_instruction(self.state, symbol)
        if instruction is None:
            raise UndefinedTransitionError(self.state, symbol)
        return instruction

    def apply(self, instruction: Instruction) -> None:
        head = self.head + instruction.direction.offset
        if head < 0:
            raise TapeBoundsError(instruction.next_state, self.steps + 1)

        self.tape.write(self.head, instruction.write)
        self.state = instruction.next_state
        self.steps += 1
        self.head = head

        if self.program.is_halt_state(self.state):
            self.halted = True
            return
        self.tape.reach(self.head)

    def step(self) -> Instruction:
        instruction = self.lookup()
        self.apply(instruction)
        return instruction


class Interpreter:
    """Ejecuta cada directiva ``#run`` del programa y escribe la traza."""

    def __init__(
        self,
        program: Program,
        sink: Optional[TextIO] = None,
        *,
        trace: bool = True,
        max_steps: Optional[int] = None,
        capture_steps: bool = True,
    ) -> None:
        self.program = program
        self.sink = sink if sink is not None else sys.stdout
        self.trace = trace
        self.max_steps = max_steps
        self.capture_steps = capture_steps

    def _write(self, text: str) -> None:
        if self.trace:
            self.sink.write(text)

    def _flush(self) -> None:
        if self.trace:
            self.sink.flush()

    def execute_run(self, run: RunCmd) -> RunResult:
        machine = Machine(self.program, run)
        history: List[TraceStep] = []
        logger.info("running %s", run)

        self._write(f"{run}\n")
        try:
            while not machine.halted:
                if self.max_steps is not None and machine.steps >= self.max_steps:
                    raise StepLimitExceeded(self.max_steps, machine.state)

                instruction = machine.lookup()
                if self.trace or self.capture_steps:
                    snapshot = TraceStep(
                        step=machine.steps,
                        instruction=instruction,
                        tape=list(machine.tape.cells),
                        head=machine.head,
                    )
                    if self.capture_steps:
                        history.append(snapshot)
                    if self.trace:
                        self.sink.write(snapshot.format())

                machine.apply(instruction)
                logger.debug("step %d: %s", machine.steps, instruction)
                self._flush()

            self._write(format_tape(machine.tape.cells, machine.head))
            self._write(f" -- HALT -- with {machine.state}\n\n")
        finally:
            self._flush()

        logger.info("halted in state %s after %d step(s)", machine.state, machine.steps)
        return RunResult(
            run=run,
            final_state=machine.state,
            tape=list(machine.tape.cells),
            head=machine.head,
            steps=machine.steps,
            history=history,
        )

    def run_all(self) -> List[RunResult]:
        return [self.execute_run(run) for run in self.program.runs]
