"""
Fee/fine settings schema.

Frozen dataclasses parsed from the YAML settings file by
``feefine_config.loader``.  Defaults here are the values used when a
section or key is absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ReportSettings:
    """Refund report generation settings."""

    default_timezone: str = "UTC"
    max_workers: int = 4

    def __post_init__(self) -> None:
        if not self.default_timezone:
            raise ValueError("report.default_timezone must not be empty")
        if self.max_workers < 1:
            raise ValueError(
                f"report.max_workers must be at least 1, got {self.max_workers}"
            )


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self) -> None:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = self.level.upper()
        if normalized not in valid:
            raise ValueError(f"logging.level must be one of {sorted(valid)}, got {self.level!r}")
        object.__setattr__(self, "level", normalized)


@dataclass(frozen=True)
class FeeFineSettings:
    """Top-level settings object returned by get_active_config()."""

    report: ReportSettings = field(default_factory=ReportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    checksum: str = ""
