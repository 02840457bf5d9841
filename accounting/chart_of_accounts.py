# accounting/chart_of_accounts.py

"""
ARGENTINE CHART OF ACCOUNTS (PLAN DE CUENTAS)

Seed data shared by the 0002 data migration and the
`seed_chart_of_accounts` management command.

Each row: (code, name, account_type, accepts_entries)
Parents are derived from the dotted code; level = number of segments.
"""

from __future__ import annotations

ASSET = "ASSET"
LIABILITY = "LIABILITY"
EQUITY = "EQUITY"
REVENUE = "REVENUE"
EXPENSE = "EXPENSE"

CHART: list[tuple[str, str, str, bool]] = [
    ("1", "ACTIVO", ASSET, False),
    ("1.1", "ACTIVO CORRIENTE", ASSET, False),
    ("1.1.01", "Caja y Bancos", ASSET, False),
    ("1.1.01.001", "Caja", ASSET, True),
    ("1.1.01.002", "Caja Chica", ASSET, True),
    ("1.1.01.003", "Banco Cuenta Corriente", ASSET, True),
    ("1.1.01.004", "Banco Caja de Ahorro", ASSET, True),
    ("1.1.01.005", "Valores a Depositar", ASSET, True),
    ("1.1.03", "Créditos por Ventas", ASSET, False),
    ("1.1.03.001", "Deudores por Ventas", ASSET, True),
    ("1.1.03.002", "Documentos a Cobrar", ASSET, True),
    ("1.1.03.004", "Cheques de Terceros", ASSET, True),
    ("1.1.04", "Otros Créditos", ASSET, False),
    ("1.1.04.001", "IVA Crédito Fiscal", ASSET, True),
    ("1.1.04.002", "Retenciones y Percepciones IIBB a Favor", ASSET, True),
    ("1.1.04.003", "Anticipos a Proveedores", ASSET, True),
    ("1.1.04.004", "Retenciones de IVA Sufridas", ASSET, True),
    ("1.1.04.005", "Retenciones de Ganancias Sufridas", ASSET, True),
    ("1.1.05", "Bienes de Cambio", ASSET, False),
    ("1.1.05.001", "Mercaderías", ASSET, True),
    ("1.2", "ACTIVO NO CORRIENTE", ASSET, False),
    ("1.2.01", "Bienes de Uso", ASSET, False),
    ("1.2.01.003", "Muebles y Útiles", ASSET, True),
    ("1.2.01.005", "Equipos de Computación", ASSET, True),
    ("2", "PASIVO", LIABILITY, False),
    ("2.1", "PASIVO CORRIENTE", LIABILITY, False),
    ("2.1.01", "Deudas Comerciales", LIABILITY, False),
    ("2.1.01.001", "Proveedores", LIABILITY, True),
    ("2.1.01.002", "Documentos a Pagar", LIABILITY, True),
    ("2.1.01.003", "Anticipos de Clientes", LIABILITY, True),
    ("2.1.02", "Deudas Fiscales", LIABILITY, False),
    ("2.1.02.001", "IVA Débito Fiscal", LIABILITY, True),
    ("2.1.02.002", "IVA a Pagar", LIABILITY, True),
    ("2.1.02.003", "Retenciones a Pagar", LIABILITY, True),
    ("2.1.02.004", "Percepciones a Pagar", LIABILITY, True),
    ("2.1.02.005", "Ganancias a Pagar", LIABILITY, True),
    ("2.1.02.006", "IIBB a Pagar", LIABILITY, True),
    ("2.1.02.007", "Retenciones SUSS", LIABILITY, True),
    ("3", "PATRIMONIO NETO", EQUITY, False),
    ("3.1", "Capital", EQUITY, False),
    ("3.1.01", "Capital Social", EQUITY, True),
    ("3.2", "Resultados", EQUITY, False),
    ("3.2.01", "Resultados Acumulados", EQUITY, True),
    ("3.2.02", "Resultado del Ejercicio", EQUITY, True),
    ("4", "INGRESOS", REVENUE, False),
    ("4.1", "Ingresos por Ventas", REVENUE, False),
    ("4.1.01", "Ventas", REVENUE, True),
    ("4.1.02", "Ventas Exportación", REVENUE, True),
    ("4.2", "Otros Ingresos", REVENUE, False),
    ("4.2.02", "Descuentos Obtenidos", REVENUE, True),
    ("4.2.03", "Diferencias de Cambio Positivas", REVENUE, True),
    ("5", "EGRESOS", EXPENSE, False),
    ("5.1", "Costo de Ventas", EXPENSE, False),
    ("5.1.01", "Costo de Mercaderías Vendidas", EXPENSE, True),
    ("5.1.02", "Compras", EXPENSE, True),
    ("5.2", "Gastos de Administración", EXPENSE, False),
    ("5.2.04", "Servicios Públicos", EXPENSE, True),
    ("5.2.05", "Alquileres", EXPENSE, True),
    ("5.2.08", "Gastos de Oficina", EXPENSE, True),
    ("5.3", "Gastos de Comercialización", EXPENSE, False),
    ("5.3.04", "Fletes y Acarreos", EXPENSE, True),
    ("5.4", "Gastos Financieros", EXPENSE, False),
    ("5.4.02", "Gastos Bancarios", EXPENSE, True),
    ("5.4.03", "Diferencias de Cambio Negativas", EXPENSE, True),
]


def parent_code(code: str) -> str | None:
    if "." not in code:
        return None
    return code.rsplit(".", 1)[0]


def seed_chart(account_model) -> tuple[int, int]:
    """
    Idempotent upsert of CHART. Works with the real model and with the
    historical model inside migrations (no custom save() logic relied on).

    Returns (created, updated).
    """
    by_code = {}
    created = 0
    updated = 0

    for code, name, account_type, accepts_entries in CHART:
        parent = by_code.get(parent_code(code))
        level = len(code.split("."))

        account = account_model.objects.filter(code=code).first()
        if account is None:
            account = account_model(
                code=code,
                name=name,
                account_type=account_type,
                accepts_entries=accepts_entries,
                parent=parent,
                level=level,
                is_active=True,
            )
            account.save()
            created += 1
        else:
            changed = False
            for attr, value in (
                ("name", name),
                ("account_type", account_type),
                ("accepts_entries", accepts_entries),
                ("parent", parent),
                ("level", level),
                ("is_active", True),
            ):
                if getattr(account, attr) != value:
                    setattr(account, attr, value)
                    changed = True
            if changed:
                account.save()
                updated += 1

        by_code[code] = account

    return created, updated
