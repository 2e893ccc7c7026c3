from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .compiler import PRINT_BUFFER_SIZE, TAPE_SIZE
from .errors import ConfigError

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
# La celda de la cabeza ocupa un solo byte.
MAX_TAPE_SIZE = 256


@dataclass(frozen=True)
class TurirConfig:
    """Ajustes compartidos por el intérprete, el compilador y la CLI."""

    max_steps: Optional[int] = None
    capture_steps: bool = True
    tape_size: int = TAPE_SIZE
    print_buffer_size: int = PRINT_BUFFER_SIZE
    log_level: str = "WARNING"

    def merged(self, **overrides: Any) -> "TurirConfig":
        """Devuelve una copia aplicando cada valor distinto de ``None``."""

        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def _normalize_config(data: Dict) -> Dict:
    """Acepta configuraciones con o sin el nodo 'turir'."""

    if "turir" in data and isinstance(data["turir"], dict):
        return data["turir"]
    return data


def _section(config: Dict, key: str) -> Dict:
    value = config.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"The '{key}' block must be a mapping.")
    return value


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive integer, got {value!r}.")
    return value


def load_config(path: str | Path) -> TurirConfig:
    """Carga y valida el archivo YAML de configuración."""

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            raw_data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if raw_data is None:
        return TurirConfig()
    if not isinstance(raw_data, dict):
        raise ConfigError("The configuration file must describe a mapping.")

    config = _normalize_config(raw_data)
    known = {"interpreter", "compiler", "log_level"}
    unknown = sorted(set(config) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(map(str, unknown))}.")

    interpreter = _section(config, "interpreter")
    max_steps = interpreter.get("max_steps")
    if max_steps is not None:
        max_steps = _positive_int(max_steps, "interpreter.max_steps")
    capture_steps = interpreter.get("capture_steps", True)
    if not isinstance(capture_steps, bool):
        raise ConfigError(f"'interpreter.capture_steps' must be a boolean, got {capture_steps!r}.")

    compiler = _section(config, "compiler")
    tape_size = _positive_int(compiler.get("tape_size", TAPE_SIZE), "compiler.tape_size")
    if tape_size > MAX_TAPE_SIZE:
        raise ConfigError(f"'compiler.tape_size' cannot exceed {MAX_TAPE_SIZE}, got {tape_size}.")
    print_buffer_size = _positive_int(
        compiler.get("print_buffer_size", PRINT_BUFFER_SIZE), "compiler.print_buffer_size"
    )

    log_level = str(config.get("log_level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level {config.get('log_level')!r}. Allowed values: {', '.join(LOG_LEVELS)}."
        )

    return TurirConfig(
        max_steps=max_steps,
        capture_steps=capture_steps,
        tape_size=tape_size,
        print_buffer_size=print_buffer_size,
        log_level=log_level,
    )
