from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

Json = Dict[str, Any]


@dataclass
class RewardInputError(ValueError):
    """Malformed caller input (missing fields, non-numeric values, mismatched vectors)."""

    code: str
    reason: str
    details: Json = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code}:{self.reason}:{self.details}"
