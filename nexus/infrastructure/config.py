"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to dispatcher, logging and telemetry settings
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Callables (error sink, capacity callback) cannot come from a file; they are
  supplied in code when converting to DispatcherSettings
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import dataclasses
import json
import logging
import os

from nexus.application.dtos.emit_options import EmitOptions
from nexus.domain.events.event import ErrorSink
from nexus.domain.services.listener_registry import CapacityCallback
from nexus.infrastructure.event_manager import DispatcherSettings
from nexus.infrastructure.telemetry.otel_exporter import OTELConfig

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes", "on")


@dataclass(frozen=True)
class DispatchConfig:
    """Dispatcher defaults."""
    debug: bool = False
    max_listeners: int = 0  # 0 = unlimited
    mode: str = "sequential"
    stop_on_error: bool = False
    timeout_ms: float = 0  # 0 = no per-listener timeout


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    service_name: str = "event-nexus"
    insecure: bool = False


@dataclass(frozen=True)
class NexusConfig:
    """Root configuration for an Event Nexus process."""
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "WARNING"
    json_logs: bool = False

    def to_settings(
        self,
        on_error: Optional[ErrorSink] = None,
        on_capacity_exceeded: Optional[CapacityCallback] = None,
    ) -> DispatcherSettings:
        return DispatcherSettings(
            debug=self.dispatch.debug,
            max_listeners=self.dispatch.max_listeners or None,
            on_error=on_error,
            on_capacity_exceeded=on_capacity_exceeded,
            default_options=EmitOptions(
                mode=self.dispatch.mode,
                stop_on_error=self.dispatch.stop_on_error,
                timeout_ms=self.dispatch.timeout_ms or None,
            ),
        )

    def to_otel_config(self) -> OTELConfig:
        return OTELConfig(
            endpoint=self.telemetry.endpoint,
            service_name=self.telemetry.service_name,
            insecure=self.telemetry.insecure,
        )

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def _env_override(data: dict, prefix: str = "NEXUS") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern NEXUS_SECTION_KEY.
    For example: NEXUS_DISPATCH_DEBUG=true, NEXUS_TELEMETRY_ENDPOINT=...
    Keys without a known section are treated as top-level (NEXUS_LOG_LEVEL).
    """
    sections = {"dispatch", "telemetry"}
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        parts = key[len(prefix) + 1:].lower().split("_", 1)
        if len(parts) == 2 and parts[0] in sections:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        else:
            data["_".join(parts)] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Invalid config file %s: top level must be an object", path)
        return {}
    return data


def _coerce(value, type_name: str):
    if not isinstance(value, str):
        return value
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    if type_name == "bool":
        return value.strip().lower() in _TRUTHY
    return value


def _build_sub_config(cls, data: dict):
    """Build a config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name: f for f in dataclasses.fields(cls)}
    filtered = {
        k: _coerce(v, valid_fields[k].type)
        for k, v in data.items()
        if k in valid_fields
    }
    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "NEXUS",
) -> NexusConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (NEXUS_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to nexus.json in CWD.
        env_prefix: Environment variable prefix. Defaults to NEXUS.
    """
    config_path = Path(path) if path else Path("nexus.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return NexusConfig(
        dispatch=_build_sub_config(DispatchConfig, data.get("dispatch") or {}),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry") or {}),
        log_level=str(data.get("log_level", "WARNING")),
        json_logs=_coerce(data.get("json_logs", False), "bool"),
    )
