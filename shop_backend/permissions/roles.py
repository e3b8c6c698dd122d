# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# They describe what the staff member does in the shop.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLE_ATTENDANT = "attendant"  # front counter: takes orders, receives payments
ROLE_TECHNICIAN = "technician"  # workbench: repairs, no money handling

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_CASHIER,
    ROLE_ATTENDANT,
    ROLE_TECHNICIAN,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_FINANCE_VIEW = "finance.view"  # ledger listing, reports, balances
CAP_FINANCE_POST = "finance.post"  # manual entries, edits, deletes, reversals
CAP_FINANCE_TRANSFER = "finance.transfer"
CAP_FINANCE_ACCOUNTS = "finance.accounts"  # create / rename / deactivate accounts

CAP_CASH_OPERATE = "cash.operate"  # open the drawer, see the current session
CAP_CASH_CLOSE = "cash.close"  # close + reconcile (elevated)

ALL_CAPABILITIES = {
    CAP_FINANCE_VIEW,
    CAP_FINANCE_POST,
    CAP_FINANCE_TRANSFER,
    CAP_FINANCE_ACCOUNTS,
    CAP_CASH_OPERATE,
    CAP_CASH_CLOSE,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_FINANCE_VIEW,
        CAP_FINANCE_POST,
        CAP_FINANCE_TRANSFER,
        CAP_CASH_OPERATE,
        CAP_CASH_CLOSE,
        # account lifecycle stays with admin
    },
    ROLE_CASHIER: {
        CAP_FINANCE_VIEW,
        CAP_CASH_OPERATE,
    },
    ROLE_ATTENDANT: {
        CAP_CASH_OPERATE,
    },
    ROLE_TECHNICIAN: set(),
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(user) -> set[str]:
    """
    Capabilities granted by the user's role. Superusers hold all of them.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return set()

    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    return capability in effective_capabilities_for(user)


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
        view.required_capability = CAP_FINANCE_TRANSFER

    A view may also map HTTP methods to capabilities:
        view.required_capabilities = {"GET": CAP_FINANCE_VIEW, "POST": CAP_FINANCE_POST}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        per_method = getattr(view, "required_capabilities", None) or {}
        required = per_method.get(request.method) or getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return user_has_capability(user, required)


class IsStaff(BaseRolePermission):
    allowed_roles = STAFF_ROLES
