# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# They describe what the staff member does.
ROLE_ADMIN = "admin"
ROLE_CONTADOR = "contador"      # accountant: owns the ledger
ROLE_VENDEDOR = "vendedor"      # sales: quotes + invoices
ROLE_COMPRAS = "compras"        # purchasing: supplier invoices
ROLE_TESORERIA = "tesoreria"    # treasury: receipts / collections
ROLE_VIEWER = "viewer"          # read-only staff

ROLE_CHOICES = [
    (ROLE_ADMIN, "Administrador"),
    (ROLE_CONTADOR, "Contador"),
    (ROLE_VENDEDOR, "Vendedor"),
    (ROLE_COMPRAS, "Compras"),
    (ROLE_TESORERIA, "Tesorería"),
    (ROLE_VIEWER, "Consulta"),
]


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_LEDGER_VIEW = "ledger.view"
CAP_LEDGER_POST = "ledger.post"          # manual entries: create/edit/confirm/delete/void

CAP_SALES_VIEW = "sales.view"
CAP_SALES_QUOTE = "sales.quote"
CAP_SALES_INVOICE = "sales.invoice"

CAP_PURCHASES_VIEW = "purchases.view"
CAP_PURCHASES_MANAGE = "purchases.manage"
CAP_PURCHASES_APPROVE = "purchases.approve"

CAP_TREASURY_VIEW = "treasury.view"
CAP_TREASURY_COLLECT = "treasury.collect"
CAP_TREASURY_APPROVE = "treasury.approve"

CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"
CAP_INVENTORY_ADJUST = "inventory.adjust"     # sensitive manual adjustments

CAP_INTEGRATIONS_USE = "integrations.use"

ALL_CAPABILITIES = {
    CAP_LEDGER_VIEW,
    CAP_LEDGER_POST,
    CAP_SALES_VIEW,
    CAP_SALES_QUOTE,
    CAP_SALES_INVOICE,
    CAP_PURCHASES_VIEW,
    CAP_PURCHASES_MANAGE,
    CAP_PURCHASES_APPROVE,
    CAP_TREASURY_VIEW,
    CAP_TREASURY_COLLECT,
    CAP_TREASURY_APPROVE,
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_ADJUST,
    CAP_INTEGRATIONS_USE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_CONTADOR: {
        CAP_LEDGER_VIEW,
        CAP_LEDGER_POST,
        CAP_SALES_VIEW,
        CAP_PURCHASES_VIEW,
        CAP_PURCHASES_APPROVE,
        CAP_TREASURY_VIEW,
        CAP_TREASURY_APPROVE,
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_ADJUST,
        CAP_INTEGRATIONS_USE,
    },
    ROLE_VENDEDOR: {
        CAP_SALES_VIEW,
        CAP_SALES_QUOTE,
        CAP_SALES_INVOICE,
        CAP_INVENTORY_VIEW,
        CAP_INTEGRATIONS_USE,
    },
    ROLE_COMPRAS: {
        CAP_PURCHASES_VIEW,
        CAP_PURCHASES_MANAGE,
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
    },
    ROLE_TESORERIA: {
        CAP_SALES_VIEW,
        CAP_TREASURY_VIEW,
        CAP_TREASURY_COLLECT,
        CAP_TREASURY_APPROVE,
    },
    ROLE_VIEWER: {
        CAP_LEDGER_VIEW,
        CAP_SALES_VIEW,
        CAP_PURCHASES_VIEW,
        CAP_TREASURY_VIEW,
        CAP_INVENTORY_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(request, user) -> set[str]:
    """
    Capabilities granted by the user's role. Superusers hold all of them.
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    role = get_user_role(user)
    return set(ROLE_CAPABILITIES.get(role, set()))


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Base permission for role-based access control.

    Subclasses must define:
    - allowed_roles (set)
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_LEDGER_POST

    ViewSets may expose required_capability as a property that depends on
    self.action (read vs write actions).
    """

    message = "Your role does not allow this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        caps = effective_capabilities_for(request, user)
        return required in caps


# =========================================================
# Role Permissions
# =========================================================
class IsAdmin(BaseRolePermission):
    allowed_roles = {ROLE_ADMIN}
