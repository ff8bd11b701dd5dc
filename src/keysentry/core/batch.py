"""Batch input parsing for .env and JSON files.

Each value becomes its own SecretBuffer. Malformed entries are recorded as
InputValidationError and skipped; they never abort the batch.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from keysentry.core.secure_buffer import SecretBuffer


class InputValidationError(ValueError):
    """A batch entry (or the whole batch file) could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None, name: str | None = None):
        super().__init__(message)
        self.line_number = line_number
        self.name = name


@dataclass
class BatchEntry:
    """One named secret from a batch file."""

    name: str
    secret: SecretBuffer
    line_number: int | None = None


@dataclass
class BatchInput:
    """Parsed batch file.

    Call dispose() (or use it as a context manager) once processing is done.
    """

    path: Path
    entries: list[BatchEntry] = field(default_factory=list)
    skipped: list[InputValidationError] = field(default_factory=list)

    def dispose(self) -> None:
        for entry in self.entries:
            entry.secret.dispose()

    def __enter__(self) -> BatchInput:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def __len__(self) -> int:
        return len(self.entries)


class BatchParser:
    """Parse batch files into SecretBuffer entries.

    Handles:
    - .env files: KEY=value, KEY="value", KEY='value', optional "export "
    - JSON files: a single object of {"NAME": "secret"} pairs
    - Comments and blank lines (skipped)
    """

    LINE_PATTERN = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_.-]*)\s*=\s*(.*)$")

    def parse(self, path: Path | str) -> BatchInput:
        """Parse a batch file, choosing the format from its extension.

        .env files are decoded line by line, so a line that is not valid
        UTF-8 is skipped like any other malformed entry.

        Raises:
            FileNotFoundError: If the file doesn't exist
            InputValidationError: If a JSON file is not valid UTF-8 or not a JSON object
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Batch file not found: {path}")

        raw = path.read_bytes()
        if path.suffix.lower() == ".json":
            try:
                content = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise InputValidationError("Batch JSON is not valid UTF-8") from None
            batch = self.parse_json_string(content)
        else:
            batch = self._parse_env_lines(self._decode_lines(raw))
        batch.path = path
        return batch

    def parse_env_string(self, content: str) -> BatchInput:
        """Parse .env formatted content."""
        return self._parse_env_lines(enumerate(content.splitlines(), start=1))

    def _decode_lines(self, raw: bytes) -> Iterator[tuple[int, str | InputValidationError]]:
        for line_num, line in enumerate(raw.splitlines(), start=1):
            try:
                yield line_num, line.decode("utf-8")
            except UnicodeDecodeError:
                yield line_num, InputValidationError("Line is not valid UTF-8", line_number=line_num)

    def _parse_env_lines(self, lines: Iterable[tuple[int, str | InputValidationError]]) -> BatchInput:
        batch = BatchInput(path=Path())

        for line_num, line in lines:
            if isinstance(line, InputValidationError):
                batch.skipped.append(line)
                continue

            line = line.strip()

            if not line or line.startswith("#"):
                continue

            match = self.LINE_PATTERN.match(line)
            if not match:
                batch.skipped.append(
                    InputValidationError("Line is not in KEY=value form", line_number=line_num)
                )
                continue

            name = match.group(1)
            value = self._unquote(match.group(2).strip())

            # KEY= and KEY="" carry nothing to check
            if not value:
                continue

            batch.entries.append(
                BatchEntry(name=name, secret=SecretBuffer.from_str(value), line_number=line_num)
            )

        return batch

    def parse_json_string(self, content: str) -> BatchInput:
        """Parse a JSON object of name/secret pairs.

        Raises:
            InputValidationError: If the content is not a JSON object
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise InputValidationError(f"Invalid JSON at line {e.lineno}") from None

        if not isinstance(data, dict):
            raise InputValidationError("Batch JSON must be an object of name/secret pairs")

        batch = BatchInput(path=Path())
        for name, value in data.items():
            if not isinstance(value, str):
                batch.skipped.append(
                    InputValidationError("Value is not a string", name=str(name))
                )
                continue
            if not value:
                continue
            batch.entries.append(BatchEntry(name=str(name), secret=SecretBuffer.from_str(value)))

        return batch

    def _unquote(self, value: str) -> str:
        """Remove surrounding single or double quotes from a value."""
        if len(value) >= 2:
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                return value[1:-1]
        return value
