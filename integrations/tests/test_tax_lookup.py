# integrations/tests/test_tax_lookup.py

import httpx
from django.test import SimpleTestCase

from integrations.exceptions import ExternalServiceError, InvalidTaxIdError, TaxpayerNotFoundError
from integrations.tax_lookup import TaxIdLookupClient

PADRON_RESPONSE = {
    "datosGenerales": {
        "nombre": "DISTRIBUIDORA NORTE SA",
        "razonSocial": "DISTRIBUIDORA NORTE SA",
        "tipoPersona": "JURIDICA",
        "estadoClave": "ACTIVO",
    },
    "datosRegimenGeneral": {"idImpuesto": 30, "descripcion": "IVA"},
    "domicilioFiscal": {
        "direccion": "AV CORRIENTES 1234",
        "localidad": "CIUDAD AUTONOMA BUENOS AIRES",
        "descripcionProvincia": "CIUDAD AUTONOMA BUENOS AIRES",
        "codigoPostal": "1043",
    },
    "actividades": [{"descripcion": "VENTA AL POR MAYOR DE ARTICULOS DE FERRETERIA"}],
}


class TaxIdLookupTests(SimpleTestCase):
    def setUp(self):
        self.calls = []

    def _client(self, response):
        def handler(request):
            self.calls.append(request)
            return response

        return TaxIdLookupClient(
            url="https://padron.test/api/",
            token="t0k3n",
            timeout=2.0,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )

    def test_resolve_parses_registry_record(self):
        record = self._client(httpx.Response(200, json=PADRON_RESPONSE)).resolve("30-71234567-1")

        self.assertEqual(record.cuit, "30712345671")
        self.assertEqual(record.name, "DISTRIBUIDORA NORTE SA")
        self.assertEqual(record.person_type, "JURIDICA")
        self.assertEqual(record.tax_condition, "RESPONSABLE_INSCRIPTO")
        self.assertEqual(record.postal_code, "1043")
        self.assertTrue(record.is_active)

        request = self.calls[0]
        self.assertEqual(str(request.url), "https://padron.test/api/30712345671")
        self.assertEqual(request.headers["Authorization"], "Bearer t0k3n")

    def test_monotributo(self):
        payload = {**PADRON_RESPONSE, "datosMonotributo": {"descripcionMonotributo": "CATEGORIA D"}}
        record = self._client(httpx.Response(200, json={"data": payload})).resolve("30712345671")
        self.assertEqual(record.tax_condition, "MONOTRIBUTO")

    def test_invalid_cuit_makes_no_call(self):
        client = self._client(httpx.Response(200, json=PADRON_RESPONSE))
        with self.assertRaises(InvalidTaxIdError):
            client.resolve("30-71234567-2")
        self.assertEqual(self.calls, [])

    def test_unknown_taxpayer(self):
        with self.assertRaises(TaxpayerNotFoundError):
            self._client(httpx.Response(404)).resolve("30712345671")

    def test_server_error(self):
        with self.assertRaises(ExternalServiceError):
            self._client(httpx.Response(500)).resolve("30712345671")
