# integrations/tests/test_colppy.py

import json
from datetime import date, timedelta

import httpx
from django.test import SimpleTestCase

from integrations.colppy import ColppyClient, ColppyConfig, md5_hex
from integrations.exceptions import ExternalServiceError, IntegrationNotConfiguredError
from integrations.tests.test_token_cache import T0, FakeClock
from integrations.token_cache import InMemoryTokenCache

CONFIG = ColppyConfig(
    endpoint="https://colppy.test/service.php",
    user="tester@example.com",
    password="secret",
    company_id="1234",
    timeout=5.0,
    session_ttl=timedelta(minutes=20),
)


def ok(data=None, **response):
    return httpx.Response(200, json={"result": {"estado": 0}, "response": {"success": True, "data": data, **response}})


class FakeColppy:
    """
    Minimal Colppy stand-in: hands out numbered session keys and serves
    `rows` page by page for every listing operation.
    """

    def __init__(self, rows=None, valid_sessions=None):
        self.rows = rows or []
        self.requests = []
        self.logins = 0
        self.valid_sessions = valid_sessions

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        operation = payload["service"]["operacion"]

        if operation == "iniciar_sesion":
            self.logins += 1
            key = f"session-{self.logins}"
            if self.valid_sessions is not None:
                self.valid_sessions.add(key)
            return ok({"claveSesion": key})

        session = payload["parameters"]["sesion"]["claveSesion"]
        if self.valid_sessions is not None and session not in self.valid_sessions:
            return httpx.Response(200, json={"result": {"estado": 1, "mensaje": "Sesion invalida"}})

        start = payload["parameters"].get("start", 0)
        limit = payload["parameters"].get("limit", 50)
        return ok(self.rows[start:start + limit])

    @property
    def operations(self):
        return [p["service"]["operacion"] for p in self.requests]


class ColppyClientTests(SimpleTestCase):
    """
    GUARANTEES:
    - one login per cached session; a new login after expiry or rejection
    - listings are paginated until a short page
    - every failure surfaces as ExternalServiceError
    """

    def setUp(self):
        self.clock = FakeClock()
        self.cache = InMemoryTokenCache(clock=self.clock)

    def _client(self, handler):
        return ColppyClient(
            CONFIG,
            self.cache,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
            clock=self.clock,
        )

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def test_login_sends_md5_password(self):
        fake = FakeColppy()
        token = self._client(fake).session_token()

        self.assertEqual(token, "session-1")
        auth = fake.requests[0]["auth"]
        self.assertEqual(auth["usuario"], "tester@example.com")
        self.assertEqual(auth["password"], md5_hex("secret"))
        self.assertNotEqual(auth["password"], "secret")

    def test_session_is_reused_until_ttl(self):
        fake = FakeColppy()
        client = self._client(fake)

        client.session_token()
        client.session_token()
        self.assertEqual(fake.logins, 1)

        self.clock.advance(minutes=21)
        self.assertEqual(client.session_token(), "session-2")
        self.assertEqual(fake.logins, 2)

    def test_cache_is_shared_between_clients_with_same_credentials(self):
        fake = FakeColppy()
        self._client(fake).session_token()
        self._client(fake).session_token()
        self.assertEqual(fake.logins, 1)

    def test_rejected_session_is_renewed_once(self):
        fake = FakeColppy(rows=[{"idCliente": "1"}], valid_sessions=set())
        self.cache.set(CONFIG.cache_key, "stale", T0 + timedelta(minutes=10))
        client = self._client(fake)

        rows = list(client.list_since("customers"))

        self.assertEqual(rows, [{"idCliente": "1"}])
        self.assertEqual(fake.operations, ["listar_cliente", "iniciar_sesion", "listar_cliente"])
        self.assertEqual(self.cache.get(CONFIG.cache_key), "session-1")

    def test_failed_login_raises(self):
        def handler(request):
            return httpx.Response(200, json={"result": {"estado": 1, "mensaje": "Usuario o clave incorrecta"}})

        with self.assertRaises(ExternalServiceError) as ctx:
            self._client(handler).session_token()
        self.assertIn("Usuario o clave incorrecta", str(ctx.exception))
        self.assertIsNone(self.cache.get(CONFIG.cache_key))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def test_list_since_pages_until_short_page(self):
        fake = FakeColppy(rows=[{"idFactura": str(i)} for i in range(5)])

        rows = list(self._client(fake).list_since("invoices", date(2024, 7, 1), page_size=2))

        self.assertEqual([r["idFactura"] for r in rows], ["0", "1", "2", "3", "4"])
        listings = [p for p in fake.requests if p["service"]["operacion"] == "listar_facturasventa"]
        self.assertEqual([p["parameters"]["start"] for p in listings], [0, 2, 4])
        self.assertEqual(
            listings[0]["parameters"]["filter"],
            [{"field": "fechaFactura", "op": ">=", "value": "01-07-2024"}],
        )
        self.assertEqual(listings[0]["parameters"]["idEmpresa"], "1234")

    def test_exact_page_boundary_asks_once_more(self):
        fake = FakeColppy(rows=[{"codigo": "A"}, {"codigo": "B"}])

        rows = list(self._client(fake).list_since("inventory", page_size=2))

        self.assertEqual(len(rows), 2)
        self.assertEqual(fake.operations.count("listar_itemsinventario"), 2)

    def test_unknown_resource(self):
        with self.assertRaises(ValueError):
            list(self._client(FakeColppy()).list_since("payments"))

    def test_find_customer_formats_cuit(self):
        fake = FakeColppy(rows=[{"idCliente": "77", "CUIT": "20-12345678-6"}])

        customer = self._client(fake).find_customer_by_cuit("20123456786")

        self.assertEqual(customer["idCliente"], "77")
        query = fake.requests[-1]["parameters"]["filter"][0]
        self.assertEqual(query, {"field": "CUIT", "op": "=", "value": "20-12345678-6"})

    def test_find_customer_not_found(self):
        self.assertIsNone(self._client(FakeColppy()).find_customer_by_cuit("20123456786"))

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------
    def test_http_error(self):
        with self.assertRaises(ExternalServiceError) as ctx:
            self._client(lambda request: httpx.Response(503)).session_token()
        self.assertEqual(ctx.exception.status_code, 503)

    def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with self.assertRaises(ExternalServiceError):
            self._client(handler).session_token()

    def test_invalid_json(self):
        with self.assertRaises(ExternalServiceError):
            self._client(lambda request: httpx.Response(200, text="<html>")).session_token()

    def test_missing_credentials(self):
        with self.assertRaises(IntegrationNotConfiguredError):
            ColppyClient(ColppyConfig(endpoint="", user="", password="", company_id=""), self.cache)
