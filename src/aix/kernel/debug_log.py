"""Structured JSONL debug log with size-based rotation and secret redaction."""

from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from aix.kernel.types import now_ms


REDACTED = "***REDACTED***"
REDACTION_MODES = ("none", "default", "strict")

_SENSITIVE_KEY_RE = re.compile(
    r"(password|secret|token|authorization|cookie|api[_-]?key|access[_-]?key|private[_-]?key)",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(?i)\bbearer\s+([^\s,;]+)")
_ASSIGNMENT_RE = re.compile(
    r"(?i)\b(api[_-]?key|access[_-]?key|token|secret|authorization|cookie|private[_-]?key)\b\s*[:=]\s*([^\s,;]+)"
)
_SK_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9]{8,}\b")


def redact_text(text: str) -> str:
    if not text:
        return text
    masked = _BEARER_RE.sub("Bearer {0}".format(REDACTED), text)
    masked = _ASSIGNMENT_RE.sub(lambda m: "{0}={1}".format(m.group(1), REDACTED), masked)
    return _SK_KEY_RE.sub(REDACTED, masked)


def redact_value(value: Any, *, strict: bool = False) -> Any:
    """Mask secrets in a JSON-like value.

    Keys that look like credentials are always masked. In strict mode every
    scalar is masked as well, leaving only the shape of the payload. MCP
    server `env` maps routinely carry tokens, so this runs on every record.
    """
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            if _SENSITIVE_KEY_RE.search(str(key)):
                out[key] = REDACTED
            else:
                out[key] = redact_value(item, strict=strict)
        return out
    if isinstance(value, (list, tuple)):
        return [redact_value(item, strict=strict) for item in value]
    if strict:
        return REDACTED
    if isinstance(value, str):
        return redact_text(value)
    return value


class DebugLogWriter:
    """Best-effort JSONL writer; failures are counted, never raised."""

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool,
        max_file_bytes: int = 5 * 1024 * 1024,
        max_files: int = 3,
        redaction: str = "default",
    ) -> None:
        self._logs_dir = Path(logs_dir).expanduser()
        self._enabled = bool(enabled)
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        mode = str(redaction or "default").strip().lower()
        self._redaction = mode if mode in REDACTION_MODES else "default"
        self._write_errors = 0
        self._lock = threading.Lock()

    @classmethod
    def disabled(cls) -> "DebugLogWriter":
        return cls(logs_dir=Path("."), enabled=False)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / "debug.log.jsonl"

    @property
    def write_errors(self) -> int:
        return self._write_errors

    def info(self, component: str, kind: str, message: str, **fields: Any) -> None:
        self.write_entry(level="info", component=component, kind=kind, message=message, **fields)

    def warn(self, component: str, kind: str, message: str, **fields: Any) -> None:
        self.write_entry(level="warn", component=component, kind=kind, message=message, **fields)

    def error(self, component: str, kind: str, message: str, **fields: Any) -> None:
        self.write_entry(level="error", component=component, kind=kind, message=message, **fields)

    def write_entry(
        self,
        *,
        level: str,
        component: str,
        kind: str,
        message: str,
        editor: str = "",
        project: str = "",
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self._enabled:
            return

        record = {
            "ts_ms": now_ms(),
            "level": str(level or "info"),
            "component": str(component or "core"),
            "kind": str(kind or "diagnostic"),
            "editor": str(editor or ""),
            "project": str(project or ""),
            "message": str(message or ""),
            "data": dict(data or {}),
        }
        if self._redaction != "none":
            record["message"] = redact_text(record["message"])
            record["data"] = redact_value(record["data"], strict=self._redaction == "strict")

        line = json.dumps(record, ensure_ascii=True, separators=(",", ":"), default=str)
        payload = (line + "\n").encode("utf-8")
        with self._lock:
            try:
                self._logs_dir.mkdir(parents=True, exist_ok=True)
                self._rotate_if_needed_locked(len(payload))
                with self.active_log_file.open("ab") as fp:
                    fp.write(payload)
            except OSError:
                self._write_errors += 1

    def status(self) -> Dict[str, Any]:
        with self._lock:
            rotated: List[str] = []
            active_size = 0
            total_size = 0
            if self._enabled:
                if self.active_log_file.exists():
                    active_size = int(self.active_log_file.stat().st_size)
                total_size = active_size
                for index in range(1, self._max_files + 1):
                    path = self._rotated_file(index)
                    if path.exists():
                        rotated.append(str(path))
                        total_size += int(path.stat().st_size)
            return {
                "logs_enabled": self._enabled,
                "logs_dir": str(self._logs_dir),
                "logs_active_file": str(self.active_log_file),
                "logs_active_size_bytes": active_size,
                "logs_total_size_bytes": total_size,
                "logs_rotated_files": rotated,
                "logs_redaction": self._redaction,
                "logs_write_errors": self._write_errors,
            }

    def _rotate_if_needed_locked(self, incoming_size: int) -> None:
        current_size = 0
        if self.active_log_file.exists():
            current_size = int(self.active_log_file.stat().st_size)
        if current_size + int(incoming_size) <= self._max_file_bytes:
            return

        self._rotated_file(self._max_files).unlink(missing_ok=True)
        for index in range(self._max_files - 1, 0, -1):
            src = self._rotated_file(index)
            if src.exists():
                src.replace(self._rotated_file(index + 1))
        if self.active_log_file.exists():
            self.active_log_file.replace(self._rotated_file(1))

    def _rotated_file(self, index: int) -> Path:
        return Path("{0}.{1}".format(self.active_log_file, index))
