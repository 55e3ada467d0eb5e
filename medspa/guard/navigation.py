"""
Navigation Guard
Decides which navigation items and client-side routes to offer, from the
permission manifest served at ``/me/permissions``.

Advisory only: hiding an item never replaces the server's decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

from medspa.core.roles import Action


@dataclass(frozen=True)
class NavItem:
    id: str
    label: str
    route: str
    resource: str
    action: Action = Action.READ
    children: tuple["NavItem", ...] = field(default_factory=tuple)

    def walk(self) -> Iterator["NavItem"]:
        yield self
        for child in self.children:
            yield from child.walk()


def _item(id: str, label: str, route: str, resource: str, action: Action = Action.READ, *children: NavItem) -> NavItem:
    return NavItem(id=id, label=label, route=route, resource=resource, action=action, children=tuple(children))


# Sidebar layout; each entry names the permission it needs, not a role list
NAVIGATION: tuple[NavItem, ...] = (
    _item("dashboard", "Dashboard", "/dashboard", "dashboard"),
    _item(
        "appointments", "Appointments", "/appointments", "appointments", Action.READ,
        _item("appointments-calendar", "Calendar", "/appointments/calendar", "appointments"),
        _item("appointments-book", "Book Appointment", "/appointments/book", "appointments", Action.CREATE),
        _item("appointments-list", "All Appointments", "/appointments/list", "appointments"),
    ),
    _item(
        "clients", "Clients", "/clients", "clients", Action.READ,
        _item("clients-list", "Client List", "/clients/list", "clients"),
        _item("clients-add", "Add Client", "/clients/add", "clients", Action.CREATE),
    ),
    _item(
        "treatments", "Treatments", "/treatments", "treatments", Action.READ,
        _item("treatments-consents", "Consent Forms", "/treatments/consents", "consent-forms"),
        _item("treatments-notes", "Treatment Notes", "/treatments/notes", "treatments"),
        _item("treatments-photos", "Before & After", "/treatments/photos", "treatments", Action.UPDATE),
    ),
    _item(
        "payments", "Payments", "/payments", "payments", Action.READ,
        _item("payments-pos", "Point of Sale", "/payments/pos", "payments", Action.CREATE),
        _item("payments-history", "Payment History", "/payments/history", "payments"),
        _item("payments-packages", "Packages", "/payments/packages", "packages"),
    ),
    _item(
        "inventory", "Inventory", "/inventory", "products", Action.READ,
        _item("inventory-products", "Products", "/inventory/products", "products"),
        _item("inventory-alerts", "Stock Alerts", "/inventory/alerts", "stock-alerts"),
    ),
    _item(
        "reports", "Reports", "/reports", "reports", Action.READ,
        _item("reports-revenue", "Revenue", "/reports/revenue", "reports"),
        _item("reports-clients", "Client Analytics", "/reports/clients", "reports"),
        _item("reports-staff", "Staff Performance", "/reports/staff", "reports"),
    ),
    _item(
        "compliance", "Compliance", "/compliance", "compliance-alerts", Action.READ,
        _item("compliance-audit", "Audit Logs", "/compliance/audit", "audit-logs"),
        _item("compliance-alerts", "Compliance Alerts", "/compliance/alerts", "compliance-alerts"),
    ),
    _item(
        "settings", "Settings", "/settings", "profile", Action.READ,
        _item("settings-profile", "My Profile", "/settings/profile", "profile"),
        _item("settings-business", "Business Settings", "/settings/business", "business-settings"),
        _item("settings-staff", "Staff", "/settings/staff", "staff"),
    ),
)


class NavigationGuard:
    """Visible items and permitted transitions for one permission manifest"""

    def __init__(self, manifest: Mapping, navigation: tuple[NavItem, ...] = NAVIGATION):
        self.role: str = manifest["role"]
        self.read_only: bool = bool(manifest.get("read_only", False))
        self._permissions: dict[str, frozenset[str]] = {
            resource: frozenset(entry.get("actions", ()))
            for resource, entry in manifest.get("permissions", {}).items()
        }
        self._navigation = navigation
        self._routes: dict[str, NavItem] = {
            item.route: item for top in navigation for item in top.walk()
        }

    def allows(self, resource: str, action: Action = Action.READ) -> bool:
        return action.value in self._permissions.get(resource, frozenset())

    def _visible(self, item: NavItem) -> Optional[NavItem]:
        if not self.allows(item.resource, item.action):
            return None
        if not item.children:
            return item
        children = tuple(c for c in (self._visible(child) for child in item.children) if c is not None)
        if not children:
            return None
        return NavItem(item.id, item.label, item.route, item.resource, item.action, children)

    def visible_items(self) -> list[NavItem]:
        return [item for item in (self._visible(top) for top in self._navigation) if item is not None]

    def visible_ids(self) -> set[str]:
        return {node.id for item in self.visible_items() for node in item.walk()}

    def can_navigate(self, route: str) -> bool:
        """Unknown routes are refused"""
        item = self._routes.get(route.rstrip("/") or "/")
        if item is None:
            return False
        return item.id in self.visible_ids()

    def can_mutate(self, resource: str) -> bool:
        """Whether to render create/edit/delete affordances for a resource"""
        return any(self.allows(resource, action) for action in (Action.CREATE, Action.UPDATE, Action.DELETE))
