"""
Role Registry: the single source of truth for who may do what.

Grants are declared once, keyed by (role, resource, action). Route policies
for every namespace prefix (/admin, /provider, /reception, /staff, /client
and the unprefixed shared routes) are generated from those grants at startup
and never change afterwards. Anything the table does not mention is denied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

import structlog

from medspa.core.roles import (
    ALL_ACTIONS,
    VERB_ACTIONS,
    Action,
    Role,
    Scope,
    action_for_verb,
    parse_role,
)
from medspa.core.scope import OwnerKind

logger = structlog.get_logger()

READ = frozenset({Action.READ})
READ_UPDATE = frozenset({Action.READ, Action.UPDATE})
READ_CREATE = frozenset({Action.READ, Action.CREATE})
READ_CREATE_UPDATE = frozenset({Action.READ, Action.CREATE, Action.UPDATE})
CRUD = ALL_ACTIONS

SHARED_NAMESPACE = ""


@dataclass(frozen=True)
class Grant:
    role: Role
    resource: str
    actions: frozenset[Action]
    scope: Scope = Scope.ALL


@dataclass(frozen=True)
class Namespace:
    name: str
    roles: frozenset[Role]

    @property
    def prefix(self) -> str:
        return f"/{self.name}" if self.name else ""


@dataclass(frozen=True)
class RoleProfile:
    role: Role
    read_only: bool = False
    # How "own records" is interpreted for this role; None means the role
    # may not hold Scope.OWN grants.
    owner: Optional[OwnerKind] = None


@dataclass(frozen=True)
class RoutePolicy:
    verb: str
    pattern: str
    namespace: str
    resource: str
    scopes: Mapping[Role, Scope]

    @property
    def roles(self) -> frozenset[Role]:
        return frozenset(self.scopes)


@dataclass(frozen=True)
class ResourcePermission:
    resource: str
    actions: tuple[str, ...]
    scope: Scope


@dataclass(frozen=True)
class PermissionManifest:
    role: Role
    read_only: bool
    namespaces: tuple[str, ...]
    permissions: Mapping[str, ResourcePermission] = field(default_factory=dict)

    def allows(self, resource: str, action: Action) -> bool:
        permission = self.permissions.get(resource)
        return permission is not None and action.value in permission.actions

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "read_only": self.read_only,
            "namespaces": list(self.namespaces),
            "permissions": {
                name: {"actions": list(p.actions), "scope": p.scope.value}
                for name, p in sorted(self.permissions.items())
            },
        }


# ----------------------------------------------------------------------------
# Canonical policy table
# ----------------------------------------------------------------------------

ADMIN_VISIBLE_RESOURCES: tuple[str, ...] = (
    "appointments",
    "clients",
    "payments",
    "packages",
    "services",
    "products",
    "stock-alerts",
    "compliance-alerts",
    "audit-logs",
    "reports",
    "locations",
    "staff",
    "dashboard",
)

# Available to every authenticated role without a namespace prefix
SHARED_RESOURCES: Mapping[str, frozenset[Action]] = MappingProxyType({
    "me": READ,
    "profile": READ_UPDATE,
    "notifications": READ_CREATE,
    "business-settings": READ,
})

# Admins hold full actions on everything they can see; the read-only flag on
# their profile is what keeps them from mutating.
DEFAULT_GRANTS: tuple[Grant, ...] = tuple(
    Grant(Role.ADMIN, resource, CRUD) for resource in ADMIN_VISIBLE_RESOURCES
) + (
    Grant(Role.PROVIDER, "appointments", READ_UPDATE, Scope.OWN),
    Grant(Role.PROVIDER, "clients", READ),
    Grant(Role.PROVIDER, "treatments", CRUD, Scope.OWN),
    Grant(Role.PROVIDER, "consent-forms", READ_CREATE_UPDATE),
    Grant(Role.PROVIDER, "services", READ),
    Grant(Role.PROVIDER, "products", READ),
    Grant(Role.PROVIDER, "stock-alerts", READ),
    Grant(Role.PROVIDER, "compliance-alerts", READ),
    Grant(Role.PROVIDER, "dashboard", READ, Scope.OWN),

    Grant(Role.RECEPTION, "clients", CRUD),
    Grant(Role.RECEPTION, "appointments", CRUD),
    Grant(Role.RECEPTION, "payments", READ_CREATE_UPDATE),
    Grant(Role.RECEPTION, "packages", CRUD),
    Grant(Role.RECEPTION, "services", READ),
    Grant(Role.RECEPTION, "products", READ),
    Grant(Role.RECEPTION, "dashboard", READ),

    Grant(Role.CLIENT, "appointments", CRUD, Scope.OWN),
    Grant(Role.CLIENT, "payments", READ_CREATE, Scope.OWN),
    Grant(Role.CLIENT, "packages", READ),
    Grant(Role.CLIENT, "treatments", READ, Scope.OWN),
    Grant(Role.CLIENT, "consent-forms", CRUD, Scope.OWN),
    Grant(Role.CLIENT, "services", READ),
    Grant(Role.CLIENT, "dashboard", READ, Scope.OWN),
)

DEFAULT_NAMESPACES: tuple[Namespace, ...] = (
    Namespace("admin", frozenset({Role.ADMIN})),
    Namespace("provider", frozenset({Role.PROVIDER})),
    Namespace("reception", frozenset({Role.RECEPTION})),
    # Front-desk and clinical staff share one prefix
    Namespace("staff", frozenset({Role.RECEPTION, Role.PROVIDER})),
    Namespace("client", frozenset({Role.CLIENT})),
)

DEFAULT_PROFILES: tuple[RoleProfile, ...] = (
    RoleProfile(Role.ADMIN, read_only=True),
    RoleProfile(Role.PROVIDER, owner=OwnerKind.PROVIDER),
    RoleProfile(Role.RECEPTION),
    RoleProfile(Role.CLIENT, owner=OwnerKind.CLIENT),
)


def split_path(path: str) -> Optional[tuple[str, ...]]:
    """
    Split a request path into segments.

    Returns None for traversal segments so such paths never match a policy.
    """
    segments = tuple(segment for segment in path.split("/") if segment)
    if any(segment in (".", "..") for segment in segments):
        return None
    return segments


class RoleRegistry:
    """Immutable policy table generated from grants, namespaces and profiles."""

    def __init__(
        self,
        grants: Iterable[Grant],
        namespaces: Iterable[Namespace],
        profiles: Iterable[RoleProfile],
        shared_resources: Mapping[str, frozenset[Action]] = SHARED_RESOURCES,
    ) -> None:
        self._profiles: dict[Role, RoleProfile] = {p.role: p for p in profiles}
        missing = set(Role) - set(self._profiles)
        if missing:
            raise ValueError(f"Role profiles missing for: {sorted(r.value for r in missing)}")

        self._grants: dict[tuple[Role, str], Grant] = {}
        for grant in grants:
            key = (grant.role, grant.resource)
            if key in self._grants:
                raise ValueError(f"Duplicate grant for {grant.role.value}:{grant.resource}")
            if grant.resource in shared_resources:
                raise ValueError(f"Resource '{grant.resource}' is shared and cannot be granted per role")
            if grant.scope == Scope.OWN and self._profiles[grant.role].owner is None:
                raise ValueError(
                    f"Role '{grant.role.value}' has no ownership rule for own-scoped grant on '{grant.resource}'"
                )
            self._grants[key] = grant

        for role in Role:
            for resource, actions in shared_resources.items():
                self._grants[(role, resource)] = Grant(role, resource, actions)

        self._namespaces = tuple(namespaces) + (Namespace(SHARED_NAMESPACE, frozenset(Role)),)
        self._shared_resources = frozenset(shared_resources)
        self._policies = self._build_policies()

        logger.debug(
            "Role registry built",
            grants=len(self._grants),
            policies=len(self._policies),
            read_only_roles=sorted(r.value for r in self.read_only_roles),
        )

    def _build_policies(self) -> Mapping[tuple[str, tuple[str, ...]], RoutePolicy]:
        scopes_by_key: dict[tuple[str, str, str], dict[Role, Scope]] = {}

        for namespace in self._namespaces:
            for role in namespace.roles:
                for (grant_role, resource), grant in self._grants.items():
                    if grant_role != role:
                        continue
                    is_shared = resource in self._shared_resources
                    if is_shared != (namespace.name == SHARED_NAMESPACE):
                        continue
                    for verb, action in VERB_ACTIONS.items():
                        if action in grant.actions:
                            key = (verb, namespace.name, resource)
                            scopes_by_key.setdefault(key, {})[role] = grant.scope

        policies: dict[tuple[str, tuple[str, ...]], RoutePolicy] = {}
        for (verb, namespace_name, resource), scopes in scopes_by_key.items():
            segments = tuple(s for s in (namespace_name, resource) if s)
            policies[(verb, segments)] = RoutePolicy(
                verb=verb,
                pattern="/" + "/".join(segments),
                namespace=namespace_name,
                resource=resource,
                scopes=MappingProxyType(dict(scopes)),
            )
        return MappingProxyType(policies)

    # -- lookups ---------------------------------------------------------------

    def match(self, verb: str, path: str) -> Optional[RoutePolicy]:
        """Longest segment-prefix match; None means no entry (deny)."""
        segments = split_path(path)
        if not segments:
            return None
        verb = verb.upper()
        for length in range(len(segments), 0, -1):
            policy = self._policies.get((verb, segments[:length]))
            if policy is not None:
                return policy
        return None

    def roles_allowed(self, verb: str, path: str) -> frozenset[Role]:
        policy = self.match(verb, path)
        return policy.roles if policy else frozenset()

    def scope_for(self, role: Role, verb: str, path: str) -> Optional[Scope]:
        policy = self.match(verb, path)
        if policy is None:
            return None
        return policy.scopes.get(role)

    def profile(self, role: Role) -> RoleProfile:
        return self._profiles[role]

    def is_read_only_role(self, role: Role) -> bool:
        return self._profiles[role].read_only

    @property
    def read_only_roles(self) -> frozenset[Role]:
        return frozenset(r for r, p in self._profiles.items() if p.read_only)

    @property
    def namespaces(self) -> tuple[Namespace, ...]:
        """Role namespaces, shared namespace excluded"""
        return tuple(ns for ns in self._namespaces if ns.name)

    def namespaces_for(self, role: Role) -> tuple[str, ...]:
        return tuple(ns.prefix for ns in self._namespaces if ns.name and role in ns.roles)

    def exposed_resources(self, namespace_name: str) -> frozenset[str]:
        """Resources reachable under a namespace for at least one role."""
        return frozenset(
            policy.resource for policy in self._policies.values() if policy.namespace == namespace_name
        )

    def iter_policies(self) -> Iterator[RoutePolicy]:
        return iter(sorted(self._policies.values(), key=lambda p: (p.pattern, p.verb)))

    def permissions_for(self, role: Role) -> PermissionManifest:
        """Effective permissions for a role, read-only flag applied."""
        read_only = self.is_read_only_role(role)
        permissions: dict[str, ResourcePermission] = {}
        for (grant_role, resource), grant in self._grants.items():
            if grant_role != role:
                continue
            actions = grant.actions & {Action.READ} if read_only else grant.actions
            if not actions:
                continue
            permissions[resource] = ResourcePermission(
                resource=resource,
                actions=tuple(a.value for a in Action if a in actions),
                scope=grant.scope,
            )
        return PermissionManifest(
            role=role,
            read_only=read_only,
            namespaces=self.namespaces_for(role),
            permissions=MappingProxyType(permissions),
        )

    def is_action_allowed(self, role: Role, verb: str, path: str) -> bool:
        """Full decision without identity: path policy plus read-only override."""
        if action_for_verb(verb) is None:
            return False
        if role not in self.roles_allowed(verb, path):
            return False
        return not (self.is_read_only_role(role) and action_for_verb(verb) != Action.READ)


def build_registry(read_only_roles: Iterable[str] = ("admin",)) -> RoleRegistry:
    """Build the deployed registry, applying configured read-only flags."""
    flagged = set()
    for value in read_only_roles:
        role = parse_role(value)
        if role is None:
            raise ValueError(f"Unknown role in read-only configuration: {value!r}")
        flagged.add(role)

    profiles = [
        RoleProfile(profile.role, read_only=profile.role in flagged, owner=profile.owner)
        for profile in DEFAULT_PROFILES
    ]
    return RoleRegistry(DEFAULT_GRANTS, DEFAULT_NAMESPACES, profiles)
