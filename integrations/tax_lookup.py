# integrations/tax_lookup.py

"""
======================================================
PATH: integrations/tax_lookup.py
======================================================
TAXPAYER LOOKUP (CUIT -> registry record)

- The CUIT is validated (11 digits + check digit) before any call
- 404 from the registry -> TaxpayerNotFoundError
- Timeouts, transport errors, other HTTP errors -> ExternalServiceError
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

import httpx
from django.conf import settings

from integrations.cuit import person_type, validate_cuit
from integrations.exceptions import (
    ExternalServiceError,
    IntegrationNotConfiguredError,
    TaxpayerNotFoundError,
)

logger = logging.getLogger(__name__)

SERVICE = "tax_lookup"

TAX_CONDITION_RI = "RESPONSABLE_INSCRIPTO"
TAX_CONDITION_MONOTRIBUTO = "MONOTRIBUTO"
TAX_CONDITION_EXENTO = "EXENTO"

VAT_TAX_ID = 30


@dataclass(frozen=True)
class TaxpayerRecord:
    cuit: str
    name: str
    legal_name: str
    person_type: str
    tax_condition: str
    address: str = ""
    locality: str = ""
    province: str = ""
    postal_code: str = ""
    main_activity: str = ""
    is_active: bool = True

    def as_dict(self) -> dict:
        return asdict(self)


def tax_condition_from(payload: dict) -> str:
    regime = payload.get("datosMonotributo") or payload.get("datosRegimenGeneral") or {}
    if regime.get("descripcionMonotributo"):
        return TAX_CONDITION_MONOTRIBUTO
    if regime.get("idImpuesto") == VAT_TAX_ID:
        return TAX_CONDITION_RI
    if "EXENTO" in (regime.get("descripcion") or "").upper():
        return TAX_CONDITION_EXENTO
    return TAX_CONDITION_RI


def parse_taxpayer(cuit: str, payload: dict) -> TaxpayerRecord:
    general = payload.get("datosGenerales") or {}
    if not general:
        raise TaxpayerNotFoundError(f"No taxpayer data for CUIT {cuit}")

    address = payload.get("domicilioFiscal") or general.get("domicilioFiscal") or {}
    activities = payload.get("actividades") or []
    name = general.get("nombre") or general.get("razonSocial") or ""

    return TaxpayerRecord(
        cuit=cuit,
        name=name,
        legal_name=general.get("razonSocial") or name,
        person_type=general.get("tipoPersona") or person_type(cuit),
        tax_condition=tax_condition_from(payload),
        address=address.get("direccion") or "",
        locality=address.get("localidad") or "",
        province=address.get("descripcionProvincia") or "",
        postal_code=str(address.get("codigoPostal") or address.get("codPostal") or ""),
        main_activity=(activities[0].get("descripcion") or "") if activities else "",
        is_active=general.get("estadoClave") == "ACTIVO",
    )


class TaxIdLookupClient:
    def __init__(self, url: str | None = None, token: str | None = None, timeout: float | None = None,
                 http_client: httpx.Client | None = None):
        conf = settings.TAX_LOOKUP
        self.url = (url if url is not None else conf["URL"]).rstrip("/")
        self.token = token if token is not None else conf["TOKEN"]
        self.timeout = timeout if timeout is not None else conf["TIMEOUT"]
        if not self.url:
            raise IntegrationNotConfiguredError("Tax lookup URL is not configured")
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=self.timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def resolve(self, cuit: str) -> TaxpayerRecord:
        digits = validate_cuit(cuit)
        try:
            response = self._http.get(f"{self.url}/{digits}", headers=self._headers(), timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise ExternalServiceError("Tax lookup timed out", service=SERVICE) from exc
        except httpx.RequestError as exc:
            raise ExternalServiceError(f"Tax lookup is unreachable: {exc}", service=SERVICE) from exc

        if response.status_code == 404:
            raise TaxpayerNotFoundError(f"No taxpayer registered with CUIT {digits}")
        if response.is_error:
            raise ExternalServiceError(
                f"Tax lookup answered HTTP {response.status_code}",
                service=SERVICE,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceError("Tax lookup answered invalid JSON", service=SERVICE) from exc

        record = parse_taxpayer(digits, (payload.get("data") or payload) if isinstance(payload, dict) else {})
        logger.info("taxpayer resolved", extra={"cuit": digits, "active": record.is_active})
        return record
