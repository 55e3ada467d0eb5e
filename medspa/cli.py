"""
Operator CLI (``medspa-admin``)

The only path for creating staff principals and reassigning roles; the HTTP
API deliberately has no role-change endpoint.

Usage examples:
  medspa-admin init-db
  medspa-admin create-principal --email jo@spa.test --name "Jo Park" --role provider
  medspa-admin set-role --email jo@spa.test --role reception
  medspa-admin policies --role provider
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import sys
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from medspa.core.config import settings
from medspa.core.database import AsyncSessionLocal, engine, init_database
from medspa.core.registry import RoleRegistry, build_registry
from medspa.core.roles import Role, parse_role
from medspa.schemas.user_management import PrincipalCreateRequest
from medspa.services.principal import PrincipalExists, PrincipalMissing, principal_service

ROLE_CHOICES = [role.value for role in Role]


def _role(value: str) -> Role:
    role = parse_role(value)
    if role is None:
        raise argparse.ArgumentTypeError(f"unknown role {value!r}; choose from {', '.join(ROLE_CHOICES)}")
    return role


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="medspa-admin", description="MedSpa principal and policy administration")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    create = sub.add_parser("create-principal", help="Create a principal")
    create.add_argument("--email", required=True)
    create.add_argument("--name", required=True)
    create.add_argument("--role", type=_role, default=Role.CLIENT, help=f"One of {', '.join(ROLE_CHOICES)}")
    create.add_argument("--password", help="Prompted for when omitted")
    create.add_argument("--phone")
    create.add_argument("--location-id", type=int)

    set_role = sub.add_parser("set-role", help="Reassign a principal's role")
    set_role.add_argument("--email", required=True)
    set_role.add_argument("--role", type=_role, required=True)

    for name, help_text in (("activate", "Re-enable a principal"), ("deactivate", "Disable a principal")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--email", required=True)

    listing = sub.add_parser("list-principals", help="List principals")
    listing.add_argument("--role", type=_role)

    policies = sub.add_parser("policies", help="Print the generated route policy table")
    policies.add_argument("--role", type=_role, help="Print the permission manifest for one role instead")
    policies.add_argument("--json", action="store_true", help="Emit JSON")

    return p


def print_policies(registry: RoleRegistry, role: Optional[Role], as_json: bool) -> None:
    if role is not None:
        manifest = registry.permissions_for(role).to_dict()
        if as_json:
            print(json.dumps(manifest, indent=2))
            return
        print(f"role: {manifest['role']}  read_only: {manifest['read_only']}")
        print(f"namespaces: {', '.join(manifest['namespaces'])}")
        for resource, entry in manifest["permissions"].items():
            print(f"  {resource:<20} {','.join(entry['actions']):<28} {entry['scope']}")
        return

    rows = [
        {
            "verb": policy.verb,
            "pattern": policy.pattern,
            "roles": {r.value: s.value for r, s in sorted(policy.scopes.items(), key=lambda i: i[0].value)},
        }
        for policy in registry.iter_policies()
    ]
    if as_json:
        print(json.dumps(rows, indent=2))
        return
    for row in rows:
        roles = " ".join(f"{r}:{s}" for r, s in row["roles"].items())
        print(f"{row['verb']:<8} {row['pattern']:<32} {roles}")


async def run_command(
    args: argparse.Namespace, session_factory: async_sessionmaker, db_engine: AsyncEngine
) -> int:
    if args.command == "init-db":
        await init_database(db_engine)
        print("Database initialized")
        return 0

    async with session_factory() as db:
        if args.command == "create-principal":
            password = args.password or getpass.getpass("Password: ")
            payload = PrincipalCreateRequest(
                email=args.email,
                name=args.name,
                password=password,
                role=args.role,
                phone=args.phone,
                location_id=args.location_id,
            )
            user = await principal_service.create(db, payload)
            print(f"Created {user.email} (id={user.id}, role={user.role})")

        elif args.command == "set-role":
            user = await principal_service.change_role(db, args.email, args.role)
            print(f"{user.email} is now {user.role}; takes effect on the next request")

        elif args.command in ("activate", "deactivate"):
            user = await principal_service.set_active(db, args.email, args.command == "activate")
            print(f"{user.email} active={user.is_active}")

        elif args.command == "list-principals":
            for user in await principal_service.list_principals(db, args.role):
                state = "active" if user.is_active else "inactive"
                print(f"{user.id:>5}  {user.email:<32} {user.role:<10} {state}")

    return 0


def main(
    argv: Optional[list[str]] = None,
    session_factory: Optional[async_sessionmaker] = None,
    db_engine: Optional[AsyncEngine] = None,
) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "policies":
        print_policies(build_registry(settings.AUTH_READ_ONLY_ROLES), args.role, args.json)
        return 0

    try:
        return asyncio.run(run_command(args, session_factory or AsyncSessionLocal, db_engine or engine))
    except (PrincipalExists, PrincipalMissing) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"error: {exc.errors()[0]['msg']}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
