# users/tests/test_auth.py

from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework import status
from rest_framework.test import APITestCase

from permissions.roles import (
    ALL_CAPABILITIES,
    CAP_LEDGER_POST,
    ROLE_ADMIN,
    ROLE_CAPABILITIES,
    ROLE_TESORERIA,
    ROLE_VIEWER,
)

User = get_user_model()

PASSWORD = "Mayorista.2024!"


class AuthApiTests(APITestCase):
    """
    GUARANTEES:
    - login answers a JWT pair for valid credentials, 401 otherwise
    - /me/ lists the capabilities granted by the user's role
    - only admins create staff accounts
    """

    def setUp(self):
        self.admin = User.objects.create_user(email="admin@example.com", password=PASSWORD, role=ROLE_ADMIN)
        self.cashier = User.objects.create_user(email="caja@example.com", password=PASSWORD, role=ROLE_TESORERIA)

    def test_login_returns_tokens(self):
        response = self.client.post(
            "/api/auth/login/", {"email": "caja@example.com", "password": PASSWORD}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"], ROLE_TESORERIA)
        self.assertIn("access", response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = self.client.get("/api/auth/me/")
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], "caja@example.com")

    def test_login_with_wrong_password(self):
        response = self.client.post(
            "/api/auth/login/", {"email": "caja@example.com", "password": "otra"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_lists_role_capabilities(self):
        self.client.force_authenticate(self.cashier)
        data = self.client.get("/api/auth/me/").data

        self.assertIn("treasury.collect", data["capabilities"])
        self.assertNotIn(CAP_LEDGER_POST, data["capabilities"])
        self.assertEqual(data["capabilities"], sorted(data["capabilities"]))

    def test_superuser_holds_every_capability(self):
        root = User.objects.create_superuser(email="root@example.com", password=PASSWORD, role=ROLE_VIEWER)
        self.client.force_authenticate(root)
        data = self.client.get("/api/auth/me/").data
        self.assertEqual(set(data["capabilities"]), ALL_CAPABILITIES)

    def test_only_admin_creates_users(self):
        payload = {"email": "nuevo@example.com", "password": PASSWORD, "role": ROLE_VIEWER}

        self.client.force_authenticate(self.cashier)
        response = self.client.post("/api/auth/users/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post("/api/auth/users/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(set(response.data["capabilities"]), ROLE_CAPABILITIES[ROLE_VIEWER])
        self.assertTrue(User.objects.get(email="nuevo@example.com").check_password(PASSWORD))

    def test_new_users_default_to_viewer(self):
        user = User.objects.create_user(email="  Consulta@Example.com ", password=PASSWORD)
        self.assertEqual(user.role, ROLE_VIEWER)
        self.assertEqual(user.email, "Consulta@example.com")


class EnsureSuperuserCommandTests(APITestCase):
    def test_skips_without_env(self):
        out = StringIO()
        with mock.patch.dict("os.environ", {"AUTO_ADMIN_EMAIL": "", "AUTO_ADMIN_PASSWORD": ""}):
            call_command("ensure_superuser", stdout=out)
        self.assertIn("Skipping", out.getvalue())
        self.assertFalse(User.objects.exists())

    def test_creates_then_updates(self):
        env = {"AUTO_ADMIN_EMAIL": "boot@example.com", "AUTO_ADMIN_PASSWORD": PASSWORD}
        with mock.patch.dict("os.environ", env):
            call_command("ensure_superuser", stdout=StringIO())
            user = User.objects.get(email="boot@example.com")
            self.assertTrue(user.is_superuser)
            self.assertEqual(user.role, ROLE_ADMIN)

            user.role = ROLE_VIEWER
            user.save()
            call_command("ensure_superuser", stdout=StringIO())

        user.refresh_from_db()
        self.assertEqual(user.role, ROLE_ADMIN)
        self.assertEqual(User.objects.count(), 1)
