"""Settings resolution: home directories, user config file, CI detection."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from aix.kernel.debug_log import REDACTION_MODES, DebugLogWriter

AIX_DIR_NAME = ".aix"
SETTINGS_FILE_NAME = "config.toml"
TRACKING_FILE_NAME = "global-tracking.json"
BACKUPS_DIR_NAME = "backups"
LOGS_DIR_NAME = "logs"
DOCUMENT_FILE_NAME = "ai.json"
LOCAL_DOCUMENT_FILE_NAME = "ai.local.json"

HOME_ENV_VAR = "AIX_HOME"
ALL_SCOPES = ("rules", "prompts", "mcp", "skills", "editors")
DEFAULT_SCOPES = ("rules", "mcp", "skills", "editors")

DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_MAX_FILE_BYTES = 5 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 3
DEFAULT_LOGS_REDACTION = "default"

CI_ENV_VARS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "CIRCLECI",
    "TRAVIS",
    "JENKINS_URL",
    "BUILDKITE",
)


class SettingsError(RuntimeError):
    """Raised when the user settings file is unreadable or holds invalid values."""


@dataclass
class Settings:
    """Resolved settings for one invocation."""

    project_root: Path
    home: Path
    editors: List[str] = field(default_factory=list)
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    skip_global: bool = False
    overwrite: bool = False
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION

    @property
    def aix_home(self) -> Path:
        return self.home / AIX_DIR_NAME

    @property
    def settings_file(self) -> Path:
        return self.aix_home / SETTINGS_FILE_NAME

    @property
    def tracking_file(self) -> Path:
        return self.aix_home / TRACKING_FILE_NAME

    @property
    def backups_dir(self) -> Path:
        return self.aix_home / BACKUPS_DIR_NAME

    @property
    def logs_dir(self) -> Path:
        return self.aix_home / LOGS_DIR_NAME


def resolve_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    override = str(env.get(HOME_ENV_VAR) or "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home()


def is_ci(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    for name in CI_ENV_VARS:
        value = str(env.get(name) or "").strip().lower()
        if value and value not in {"0", "false"}:
            return True
    return False


def _safe_bool(value: object, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise SettingsError("invalid boolean for {0}: {1!r}".format(key, value))


def _safe_positive_int(value: object, key: str) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise SettingsError("invalid integer for {0}: {1!r}".format(key, value)) from exc
    if converted <= 0:
        raise SettingsError("{0} must be positive, got {1}".format(key, converted))
    return converted


def _safe_choice_list(value: object, key: str, allowed: Sequence[str]) -> List[str]:
    if not isinstance(value, list):
        raise SettingsError("{0} must be a list of strings".format(key))
    out: List[str] = []
    for item in value:
        normalized = str(item or "").strip().lower()
        if not normalized:
            continue
        if allowed and normalized not in allowed:
            raise SettingsError(
                "unsupported value in {0}: '{1}' (allowed: {2})".format(key, normalized, "|".join(allowed))
            )
        if normalized not in out:
            out.append(normalized)
    return out


def _read_settings_file(path: Path) -> Dict[str, object]:
    if not path.is_file():
        return {}
    try:
        parsed = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise SettingsError("invalid settings file: {0}".format(path)) from exc
    return parsed


def _section(data: Dict[str, object], name: str) -> Dict[str, object]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsError("[{0}] must be a table".format(name))
    return section


def load_settings(
    project_root: Optional[Path] = None,
    home: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    resolved_home = Path(home).expanduser() if home is not None else resolve_home(environ)
    settings = Settings(
        project_root=Path(project_root or Path.cwd()).resolve(),
        home=resolved_home,
    )

    data = _read_settings_file(settings.settings_file)

    install = _section(data, "install")
    if "editors" in install:
        # Editor names are validated against the adapter table by the installer.
        settings.editors = _safe_choice_list(install["editors"], "install.editors", ())
    if "scopes" in install:
        settings.scopes = _safe_choice_list(install["scopes"], "install.scopes", ALL_SCOPES)
    if "skip_global" in install:
        settings.skip_global = _safe_bool(install["skip_global"], "install.skip_global")
    if "overwrite" in install:
        settings.overwrite = _safe_bool(install["overwrite"], "install.overwrite")

    logs = _section(data, "logs")
    if "enabled" in logs:
        settings.logs_enabled = _safe_bool(logs["enabled"], "logs.enabled")
    if "max_file_bytes" in logs:
        settings.logs_max_file_bytes = _safe_positive_int(logs["max_file_bytes"], "logs.max_file_bytes")
    if "max_files" in logs:
        settings.logs_max_files = _safe_positive_int(logs["max_files"], "logs.max_files")
    if "redaction" in logs:
        redaction = str(logs["redaction"] or "").strip().lower()
        if redaction not in REDACTION_MODES:
            raise SettingsError(
                "unsupported logs.redaction '{0}' (allowed: {1})".format(redaction, "|".join(REDACTION_MODES))
            )
        settings.logs_redaction = redaction

    return settings


def build_debug_log(settings: Settings) -> DebugLogWriter:
    return DebugLogWriter(
        logs_dir=settings.logs_dir,
        enabled=settings.logs_enabled,
        max_file_bytes=settings.logs_max_file_bytes,
        max_files=settings.logs_max_files,
        redaction=settings.logs_redaction,
    )
