"""External scanner adapters.

The engine never reads source code. A scanner is anything with
``scan(workspace_root, scan_path)`` returning the raw JSON-like payload that
``graph.transformer`` understands. ``CommandScanner`` shells out to a
dependency extractor (dependency-cruiser by default); ``JsonFileScanner``
replays a payload saved earlier.
"""

from __future__ import annotations

import json
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

from ..exceptions import MalformedGraphError, ScanError, ScanTimeoutError
from ..logging_config import get_logger

logger = get_logger(__name__)

SCAN_PATH_PLACEHOLDER = "{scan_path}"

# Trailing stderr kept in error messages
_STDERR_TAIL = 500


class Scanner(Protocol):
    def scan(self, workspace_root: str, scan_path: str) -> Mapping[str, Any]: ...


class CommandScanner:
    """Run an external extractor and parse its JSON stdout.

    Args:
        command: Argument list; ``{scan_path}`` is replaced by the scan path
        timeout_seconds: Kill the process after this long
    """

    def __init__(self, command: Sequence[str], timeout_seconds: float = 120.0):
        if not command:
            raise ValueError("command must not be empty")
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    def build_args(self, scan_path: str) -> list[str]:
        args = [part.replace(SCAN_PATH_PLACEHOLDER, scan_path) for part in self.command]
        if not any(SCAN_PATH_PLACEHOLDER in part for part in self.command):
            args.append(scan_path)
        return args

    def scan(self, workspace_root: str, scan_path: str) -> Mapping[str, Any]:
        args = self.build_args(scan_path)
        logger.info(f"Scanning {workspace_root} ({scan_path}) with {args[0]}")

        try:
            result = subprocess.run(
                args,
                cwd=workspace_root,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            raise ScanError(f"scanner executable not found: {args[0]}", workspace_root)
        except subprocess.TimeoutExpired:
            raise ScanTimeoutError(self.timeout_seconds, workspace_root)
        except OSError as e:
            raise ScanError(f"could not start scanner: {e}", workspace_root)

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()[-_STDERR_TAIL:]
            raise ScanError(
                f"scanner exited with status {result.returncode}: {stderr or 'no output'}",
                workspace_root,
            )

        return _parse_payload(result.stdout, workspace_root)


class JsonFileScanner:
    """Replay a scanner payload stored on disk (e.g. a saved depcruise report)."""

    def __init__(self, payload_file: str):
        self.payload_file = Path(payload_file)

    def scan(self, workspace_root: str, scan_path: str) -> Mapping[str, Any]:
        try:
            text = self.payload_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ScanError(f"cannot read {self.payload_file}: {e}", workspace_root)
        return _parse_payload(text, workspace_root)


def _parse_payload(text: Optional[str], workspace_root: str) -> Mapping[str, Any]:
    if not text or not text.strip():
        raise MalformedGraphError("scanner produced no output", workspace_root)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedGraphError(f"invalid JSON ({e.msg} at line {e.lineno})", workspace_root)
    if not isinstance(payload, Mapping):
        raise MalformedGraphError("top-level JSON value is not an object", workspace_root)
    return payload
