"""
Row-level scope filters handed from the authorization chain to the
persistence layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OwnerKind(str, Enum):
    # record.provider_id == principal id
    PROVIDER = "provider"
    # record belongs to the client profile linked to the principal
    CLIENT = "client"


@dataclass(frozen=True)
class ScopeFilter:
    owner: OwnerKind
    principal_id: int

    def describe(self) -> str:
        return f"{self.owner.value}:{self.principal_id}"
