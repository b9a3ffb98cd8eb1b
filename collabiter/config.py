"""Configuration loading for collabiter (.collabiter.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".collabiter.yml"
DEFAULT_HOME = Path("~/.git-collabiteration-manager")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class MatchingConfig:
    """Thresholds used by the context matcher."""

    marker_ratio: float = 0.7
    directory_similarity: float = 0.8


@dataclass
class WorkflowConfig:
    """Defaults written into contexts learned for unknown projects."""

    workspace_path: str = ".git-iterations"
    branch_prefix: str = "collabiteration/"
    auto_seeding: bool = False
    auto_install: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "workspace_path": self.workspace_path,
            "branch_prefix": self.branch_prefix,
            "auto_seeding": self.auto_seeding,
            "auto_install": self.auto_install,
        }


@dataclass
class CollabConfig:
    """Represents the settings defined in .collabiter.yml."""

    home: Path
    contexts_dir: Path
    memory_dir: Path
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    git_timeout: float = 10.0
    log_file: Optional[Path] = None


def default_config(home: Path | None = None) -> CollabConfig:
    root = (home or DEFAULT_HOME).expanduser().resolve()
    return CollabConfig(home=root, contexts_dir=root / "contexts", memory_dir=root / "memory")


def load_config(home: Path | None = None) -> CollabConfig:
    """Load configuration from the manager home directory."""
    config = default_config(home)
    config_file = config.home / CONFIG_FILENAME
    if not config_file.exists():
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    storage = _as_dict(data.get("storage"))
    contexts_dir = _as_str(storage.get("contexts_dir"))
    if contexts_dir:
        config.contexts_dir = _resolve_under(config.home, contexts_dir)
    memory_dir = _as_str(storage.get("memory_dir"))
    if memory_dir:
        config.memory_dir = _resolve_under(config.home, memory_dir)

    matching = _as_dict(data.get("matching"))
    if matching:
        config.matching = MatchingConfig(
            marker_ratio=_as_ratio(matching, "marker_ratio", config.matching.marker_ratio),
            directory_similarity=_as_ratio(
                matching, "directory_similarity", config.matching.directory_similarity
            ),
        )

    workflow = _as_dict(data.get("workflow"))
    if workflow:
        defaults = WorkflowConfig()
        auto_seeding = _as_bool(workflow.get("auto_seeding"))
        auto_install = _as_bool(workflow.get("auto_install"))
        config.workflow = WorkflowConfig(
            workspace_path=_as_str(workflow.get("workspace_path")) or defaults.workspace_path,
            branch_prefix=_as_str(workflow.get("branch_prefix")) or defaults.branch_prefix,
            auto_seeding=defaults.auto_seeding if auto_seeding is None else auto_seeding,
            auto_install=defaults.auto_install if auto_install is None else auto_install,
        )

    git = _as_dict(data.get("git"))
    timeout = _as_float(git.get("timeout"))
    if timeout is not None:
        if timeout <= 0:
            raise ConfigError("git.timeout must be positive")
        config.git_timeout = timeout

    logging_data = _as_dict(data.get("logging"))
    log_file = _as_str(logging_data.get("file"))
    if log_file:
        config.log_file = _resolve_under(config.home, log_file)

    return config


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _resolve_under(home: Path, value: str) -> Path:
    candidate = Path(value).expanduser()
    if candidate.is_absolute():
        return candidate
    return home / candidate


def _as_ratio(data: Dict[str, Any], key: str, default: float) -> float:
    value = _as_float(data.get(key))
    if value is None:
        return default
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"matching.{key} must be between 0 and 1")
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None
