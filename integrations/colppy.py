# integrations/colppy.py

"""
======================================================
PATH: integrations/colppy.py
======================================================
COLPPY CLIENT (external accounting platform)

Every call is one JSON POST:
    auth       : {usuario, password (MD5)}
    service    : {provision, operacion}
    parameters : {sesion: {usuario, claveSesion}, idEmpresa, ...}

Rules:
- The session token lives in the injected TokenCache, keyed by credentials
- A rejected session is invalidated and the call retried once after login
- Transport, HTTP and protocol failures raise ExternalServiceError
- Never call this inside a ledger transaction
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

import httpx
from django.conf import settings

from integrations.cuit import format_cuit
from integrations.exceptions import ExternalServiceError, IntegrationNotConfiguredError
from integrations.token_cache import TokenCache, utc_now

logger = logging.getLogger(__name__)

SERVICE = "colppy"

# resource -> (provision, operacion, date filter field)
RESOURCES = {
    "invoices": ("FacturaVenta", "listar_facturasventa", "fechaFactura"),
    "customers": ("Cliente", "listar_cliente", "FechaAlta"),
    "inventory": ("Inventario", "listar_itemsinventario", None),
}

DEFAULT_PAGE_SIZE = 100


def md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def colppy_date(value: date) -> str:
    return value.strftime("%d-%m-%Y")


@dataclass(frozen=True)
class ColppyConfig:
    endpoint: str
    user: str
    password: str
    company_id: str
    timeout: float = 30.0
    session_ttl: timedelta = timedelta(minutes=20)

    @classmethod
    def from_settings(cls) -> "ColppyConfig":
        conf = settings.COLPPY
        return cls(
            endpoint=conf["ENDPOINT"],
            user=conf["USER"],
            password=conf["PASSWORD"],
            company_id=conf["COMPANY_ID"],
            timeout=conf["TIMEOUT"],
            session_ttl=conf["SESSION_TTL"],
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.user and self.password and self.company_id)

    @property
    def cache_key(self) -> str:
        raw = f"{self.endpoint}|{self.user}|{self.password}|{self.company_id}"
        return f"colppy:{hashlib.sha256(raw.encode('utf-8')).hexdigest()}"


class ColppyClient:
    def __init__(self, config: ColppyConfig, cache: TokenCache, http_client: httpx.Client | None = None, clock=utc_now):
        if not config.is_configured:
            raise IntegrationNotConfiguredError("Colppy credentials are not configured")
        self.config = config
        self.cache = cache
        self._clock = clock
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # -----------------------------------------------------
    # Transport
    # -----------------------------------------------------
    def _auth(self) -> dict:
        return {"usuario": self.config.user, "password": md5_hex(self.config.password)}

    def _post(self, payload: dict) -> dict:
        operation = payload["service"]["operacion"]
        try:
            response = self._http.post(self.config.endpoint, json=payload, timeout=self.config.timeout)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceError(f"Colppy timed out on {operation}", service=SERVICE) from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"Colppy answered HTTP {exc.response.status_code} on {operation}",
                service=SERVICE,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise ExternalServiceError(f"Colppy is unreachable: {exc}", service=SERVICE) from exc
        except ValueError as exc:
            raise ExternalServiceError(f"Colppy answered invalid JSON on {operation}", service=SERVICE) from exc

        if not isinstance(body, dict):
            raise ExternalServiceError(f"Colppy answered an unexpected payload on {operation}", service=SERVICE)
        return body

    @staticmethod
    def _failed(body: dict) -> str | None:
        result = body.get("result") or {}
        if result.get("estado", 0) != 0:
            return result.get("mensaje") or "unknown Colppy error"
        response = body.get("response") or {}
        if response.get("success") is False:
            return response.get("message") or "Colppy rejected the request"
        return None

    # -----------------------------------------------------
    # Session
    # -----------------------------------------------------
    def login(self) -> str:
        auth = self._auth()
        body = self._post(
            {
                "auth": auth,
                "service": {"provision": "Usuario", "operacion": "iniciar_sesion"},
                "parameters": {"usuario": auth["usuario"], "password": auth["password"]},
            }
        )
        error = self._failed(body)
        if error:
            raise ExternalServiceError(f"Colppy login failed: {error}", service=SERVICE)

        token = ((body.get("response") or {}).get("data") or {}).get("claveSesion")
        if not token:
            raise ExternalServiceError("Colppy login returned no session key", service=SERVICE)

        self.cache.set(self.config.cache_key, token, self._clock() + self.config.session_ttl)
        logger.info("colppy session opened", extra={"user": self.config.user})
        return token

    def session_token(self) -> str:
        token = self.cache.get(self.config.cache_key)
        if token:
            return token
        return self.login()

    def _payload(self, provision: str, operation: str, token: str, parameters: dict) -> dict:
        return {
            "auth": self._auth(),
            "service": {"provision": provision, "operacion": operation},
            "parameters": {
                "sesion": {"usuario": self.config.user, "claveSesion": token},
                "idEmpresa": self.config.company_id,
                **parameters,
            },
        }

    def call(self, provision: str, operation: str, parameters: dict | None = None) -> dict:
        """
        One authenticated operation. Returns the `response` object.
        """
        parameters = parameters or {}
        body = self._post(self._payload(provision, operation, self.session_token(), parameters))

        if self._failed(body):
            logger.info("colppy session rejected; logging in again", extra={"operation": operation})
            self.cache.invalidate(self.config.cache_key)
            body = self._post(self._payload(provision, operation, self.login(), parameters))
            error = self._failed(body)
            if error:
                raise ExternalServiceError(f"Colppy {operation} failed: {error}", service=SERVICE)

        return body.get("response") or {}

    # -----------------------------------------------------
    # Queries
    # -----------------------------------------------------
    def list_since(self, resource: str, since: date | None = None, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[dict]:
        """
        Yield every record of `resource` (invoices, customers, inventory),
        page by page, optionally from `since` onwards.
        """
        if resource not in RESOURCES:
            raise ValueError(f"Unknown Colppy resource: {resource}")
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        provision, operation, date_field = RESOURCES[resource]
        filters = []
        if since is not None and date_field:
            filters.append({"field": date_field, "op": ">=", "value": colppy_date(since)})

        start = 0
        while True:
            response = self.call(
                provision,
                operation,
                {"start": start, "limit": page_size, "filter": filters},
            )
            rows = response.get("data") or []
            yield from rows
            if len(rows) < page_size:
                return
            start += page_size

    def find_customer_by_cuit(self, cuit: str) -> dict | None:
        response = self.call(
            "Cliente",
            "listar_cliente",
            {
                "start": 0,
                "limit": 50,
                "filter": [{"field": "CUIT", "op": "=", "value": format_cuit(cuit)}],
                "order": [{"field": "NombreFantasia", "dir": "asc"}],
            },
        )
        rows = response.get("data") or []
        return rows[0] if rows else None
