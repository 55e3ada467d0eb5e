"""
Roles, actions and verb classification for MedSpa access control.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import structlog

logger = structlog.get_logger()


class Role(str, Enum):
    ADMIN = "admin"
    PROVIDER = "provider"
    RECEPTION = "reception"
    CLIENT = "client"


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Scope(str, Enum):
    ALL = "all"
    OWN = "own"


# Legacy role values still present in older seed data
ROLE_ALIASES: dict[str, Role] = {
    "staff": Role.RECEPTION,
}

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})

VERB_ACTIONS: dict[str, Action] = {
    "GET": Action.READ,
    "HEAD": Action.READ,
    "OPTIONS": Action.READ,
    "POST": Action.CREATE,
    "PUT": Action.UPDATE,
    "PATCH": Action.UPDATE,
    "DELETE": Action.DELETE,
}

ALL_ACTIONS: frozenset[Action] = frozenset(Action)


def is_mutating(verb: str) -> bool:
    return verb.upper() not in SAFE_METHODS


def action_for_verb(verb: str) -> Optional[Action]:
    """Unknown verbs map to no action, which no grant covers."""
    return VERB_ACTIONS.get(verb.upper())


def parse_role(value: Optional[str]) -> Optional[Role]:
    """
    Normalize a stored role value.

    Returns None for unknown values so callers fail closed.
    """
    if not value:
        return None

    normalized = value.strip().lower()
    try:
        return Role(normalized)
    except ValueError:
        pass

    alias = ROLE_ALIASES.get(normalized)
    if alias is not None:
        logger.warning("Deprecated role alias resolved", stored_role=normalized, resolved_role=alias.value)
        return alias

    logger.warning("Unknown role value", stored_role=normalized)
    return None
