"""Engine configuration for tribelist.

Settings come from ``TRIBELIST_*`` environment variables with defaults,
and CLI options override them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EngineConfig:
    """Configuration shared by the CLI and the domain services.

    Attributes:
        db_path: SQLite database file.
        log_path: Optional log file (stderr only when None).
        log_level: Logging level name.
        apply_max_attempts: Compare-and-swap attempts per sync transition.
        timeout_seconds: Default deadline for CLI operations (None = no deadline).
        import_dir: Directory served by the JSON import adapter.
    """

    db_path: Path = Path("tribelist.db")
    log_path: Path | None = None
    log_level: str = "INFO"
    apply_max_attempts: int = 3
    timeout_seconds: float | None = None
    import_dir: Path = Path("imports")

    def __post_init__(self) -> None:
        """Normalize and validate settings."""
        self.db_path = Path(self.db_path)
        self.import_dir = Path(self.import_dir)
        if self.log_path is not None:
            self.log_path = Path(self.log_path)
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        if self.apply_max_attempts < 1:
            raise ValueError("apply_max_attempts must be at least 1")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ).

        Returns:
            EngineConfig with environment overrides applied.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        log_path = env.get("TRIBELIST_LOG_PATH")
        timeout = env.get("TRIBELIST_TIMEOUT_SECONDS")

        return cls(
            db_path=Path(env.get("TRIBELIST_DB_PATH", "tribelist.db")),
            log_path=Path(log_path) if log_path else None,
            log_level=env.get("TRIBELIST_LOG_LEVEL", "INFO"),
            apply_max_attempts=_int_var(env, "TRIBELIST_APPLY_MAX_ATTEMPTS", 3),
            timeout_seconds=_float_var("TRIBELIST_TIMEOUT_SECONDS", timeout),
            import_dir=Path(env.get("TRIBELIST_IMPORT_DIR", "imports")),
        )


def _int_var(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_var(name: str, raw: str | None) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
