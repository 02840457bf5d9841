# permissions/tests/test_roles.py

from types import SimpleNamespace

from django.test import SimpleTestCase

from permissions.roles import (
    ALL_CAPABILITIES,
    CAP_LEDGER_POST,
    CAP_LEDGER_VIEW,
    CAP_TREASURY_APPROVE,
    ROLE_CAPABILITIES,
    ROLE_CHOICES,
    ROLE_COMPRAS,
    ROLE_CONTADOR,
    ROLE_VIEWER,
    HasCapability,
    IsAdmin,
    effective_capabilities_for,
)


def _user(role=None, **extra):
    return SimpleNamespace(role=role, is_authenticated=True, is_superuser=False, **extra)


def _request(user):
    return SimpleNamespace(user=user)


class RoleCapabilityTests(SimpleTestCase):
    """
    GUARANTEES:
    - every role maps only to declared capabilities
    - only the accountant and the admin post manual entries
    - an endpoint without required_capability is closed
    """

    def test_role_map_is_consistent(self):
        self.assertEqual(set(ROLE_CAPABILITIES), {role for role, _label in ROLE_CHOICES})
        for role, caps in ROLE_CAPABILITIES.items():
            with self.subTest(role=role):
                self.assertTrue(caps <= ALL_CAPABILITIES)

    def test_ledger_posting_roles(self):
        posting = {role for role, caps in ROLE_CAPABILITIES.items() if CAP_LEDGER_POST in caps}
        self.assertEqual(posting, {"admin", ROLE_CONTADOR})

    def test_unknown_role_has_nothing(self):
        self.assertEqual(effective_capabilities_for(None, _user("cadete")), set())

    def test_has_capability(self):
        permission = HasCapability()
        view = SimpleNamespace(required_capability=CAP_LEDGER_VIEW)

        self.assertTrue(permission.has_permission(_request(_user(ROLE_VIEWER)), view))
        self.assertFalse(permission.has_permission(_request(_user(ROLE_COMPRAS)), view))

        view.required_capability = CAP_TREASURY_APPROVE
        self.assertTrue(permission.has_permission(_request(_user(ROLE_CONTADOR)), view))

    def test_missing_required_capability_denies(self):
        self.assertFalse(HasCapability().has_permission(_request(_user("admin")), SimpleNamespace()))

    def test_anonymous_denied(self):
        anonymous = SimpleNamespace(is_authenticated=False)
        view = SimpleNamespace(required_capability=CAP_LEDGER_VIEW)
        self.assertFalse(HasCapability().has_permission(_request(anonymous), view))
        self.assertFalse(IsAdmin().has_permission(_request(anonymous), view))

    def test_superuser_overrides_role(self):
        root = _user(ROLE_VIEWER)
        root.is_superuser = True
        self.assertEqual(effective_capabilities_for(None, root), ALL_CAPABILITIES)
