"""
Settings Loader (``feefine_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``feefine_config.schema``.  Runtime code obtains settings only through
``feefine_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown sections or keys are rejected, so a typo never silently falls
  back to a default.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  settings for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong shape or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from feefine_config.schema import FeeFineSettings, LoggingSettings, ReportSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _parse_section(cls: type, name: str, data: Any) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Section {name!r} must be a mapping")
    allowed = {f.name for f in fields(cls)}
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in section {name!r}: {sorted(unknown)}")
    return cls(**data)


def parse_settings(data: dict[str, Any]) -> FeeFineSettings:
    """Parse a raw settings mapping into FeeFineSettings."""
    unknown = set(data) - {"report", "logging"}
    if unknown:
        raise ValueError(f"Unknown settings sections: {sorted(unknown)}")

    report = _parse_section(ReportSettings, "report", data.get("report"))
    logging_settings = _parse_section(LoggingSettings, "logging", data.get("logging"))
    return FeeFineSettings(
        report=report,
        logging=logging_settings,
        checksum=compute_checksum(report, logging_settings),
    )


def compute_checksum(report: ReportSettings, logging_settings: LoggingSettings) -> str:
    """Deterministic SHA-256 of the parsed settings."""
    canonical = json.dumps(
        {"report": asdict(report), "logging": asdict(logging_settings)},
        sort_keys=True,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_settings(path: Path) -> FeeFineSettings:
    return parse_settings(load_yaml_file(path))
