"""
Emit Options DTO

Architectural Intent:
- Per-call configuration for asynchronous emission
- Input validation at the application boundary
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from nexus.domain.services.cancellation import CancellationToken


class EmitMode(str, Enum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass(frozen=True)
class EmitOptions:
    mode: Union[EmitMode, str] = EmitMode.SEQUENTIAL
    # Only meaningful in sequential mode
    stop_on_error: bool = False
    timeout_ms: Optional[float] = None
    cancellation_token: Optional[CancellationToken] = None

    def __post_init__(self) -> None:
        try:
            mode = EmitMode(self.mode)
        except ValueError:
            raise ValueError(
                f"mode must be 'sequential' or 'concurrent', got {self.mode!r}"
            ) from None
        object.__setattr__(self, "mode", mode)
        if self.timeout_ms is not None and (
            isinstance(self.timeout_ms, bool)
            or math.isnan(self.timeout_ms)
            or self.timeout_ms <= 0
        ):
            raise ValueError("timeout_ms must be positive")
