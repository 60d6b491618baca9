"""
feefine_config -- single public entrypoint for fee/fine settings.

Responsibility:
    ``get_active_config()`` is the ONLY way runtime code obtains settings.
    No other component reads settings files or environment variables.

Resolution order:
    1. explicit ``config_path`` argument
    2. the file named by the ``FEEFINE_CONFIG_FILE`` environment variable
    3. ``defaults.yaml`` shipped with this package

Audit relevance:
    Every call emits a ``FEEFINE_CONFIG_TRACE`` log entry with the source
    path and settings checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from feefine_config.loader import load_settings
from feefine_config.schema import FeeFineSettings, LoggingSettings, ReportSettings
from feefine_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_FILE_ENV = "FEEFINE_CONFIG_FILE"
DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> FeeFineSettings:
    """Load and validate the active settings.

    Raises:
        FileNotFoundError: the resolved settings file does not exist.
        ValueError: the settings are structurally invalid.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE
    path = Path(config_path)

    settings = load_settings(path)

    _logger.info(
        "FEEFINE_CONFIG_TRACE",
        extra={
            "trace_type": "FEEFINE_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": settings.checksum,
            "default_timezone": settings.report.default_timezone,
            "max_workers": settings.report.max_workers,
        },
    )
    return settings


__all__ = [
    "CONFIG_FILE_ENV",
    "DEFAULT_CONFIG_FILE",
    "FeeFineSettings",
    "LoggingSettings",
    "ReportSettings",
    "get_active_config",
]
