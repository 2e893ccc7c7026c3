from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .compiler import Compiler
from .config_loader import LOG_LEVELS, TurirConfig, load_config
from .errors import SourceError, TurirError
from .lexer import decode_source
from .machine import Interpreter
from .parser import parse_source

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="turir",
        description="Interpreter and FASM compiler for turir Turing machine programs",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging verbosity on stderr (default: WARNING)",
    )
    commands = parser.add_subparsers(dest="command", metavar="command")
    commands.required = True

    run = commands.add_parser("run", help="Interpret every #run directive and print the trace")
    run.add_argument("source", type=Path, help="<source code>.tur")
    run.add_argument(
        "--max-steps",
        type=int,
        help="Abort a run that has not halted after this many steps",
    )
    run.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the results as JSON instead of the textual trace",
    )
    run.add_argument(
        "--no-steps",
        dest="capture_steps",
        action="store_const",
        const=False,
        help="Leave the step history out of the JSON output",
    )

    compile_ = commands.add_parser("compile", help="Emit FASM x86-64 assembly for the single #run")
    compile_.add_argument("source", type=Path, help="<source code>.tur")
    compile_.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write the assembly to this file instead of stdout",
    )
    return parser


def load_source(path: str | Path) -> str:
    """Lee un archivo fuente asegurando que la última línea termine en salto de línea."""

    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise SourceError(f"Failed to read {path}: {exc}") from exc
    return decode_source(data, str(path)) + "\n"


def _configure_logging(config: TurirConfig) -> None:
    logging.basicConfig(
        level=config.logging_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _run(args: argparse.Namespace, config: TurirConfig) -> int:
    program = parse_source(load_source(args.source), str(args.source))

    if args.json_output:
        interpreter = Interpreter(
            program,
            trace=False,
            max_steps=config.max_steps,
            capture_steps=config.capture_steps,
        )
        results = interpreter.run_all()
        print(json.dumps([result.to_dict() for result in results], indent=2, ensure_ascii=False))
        return 0

    # En modo texto sólo se escribe la traza, sin historial.
    interpreter = Interpreter(
        program,
        sys.stdout,
        max_steps=config.max_steps,
        capture_steps=False,
    )
    interpreter.run_all()
    return 0


def _compile(args: argparse.Namespace, config: TurirConfig) -> int:
    program = parse_source(load_source(args.source), str(args.source))
    compiler = Compiler(tape_size=config.tape_size, print_buffer_size=config.print_buffer_size)
    code = compiler.compile_program(program)

    if args.output is None:
        sys.stdout.write(code)
        sys.stdout.flush()
        return 0
    try:
        args.output.write_text(code, encoding="utf-8")
    except OSError as exc:
        raise SourceError(f"Failed to write {args.output}: {exc}") from exc
    logger.info("assembly written to %s", args.output)
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config is not None else TurirConfig()
        config = config.merged(
            log_level=args.log_level,
            max_steps=getattr(args, "max_steps", None),
            capture_steps=getattr(args, "capture_steps", None),
        )
        _configure_logging(config)

        if args.command == "run":
            return _run(args, config)
        return _compile(args, config)
    except TurirError as error:
        sys.stdout.flush()
        print(error, file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
