# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (LEDGER ENGINE)

This module is the ONLY place allowed to:
- Create / edit / delete JournalEntry and JournalEntryLine rows
- Enforce debit == credit (within LEDGER["BALANCE_TOLERANCE"])
- Enforce leaf-only accounts
- Drive the DRAFT -> POSTED -> VOIDED lifecycle
- Enforce idempotency via reference (prevents double-posting)

Everything else (generators, API views) must pass through here.

Concurrency:
- every write runs inside transaction.atomic
- touched accounts are locked (select_for_update) so postings to the same
  account serialize, and entry_number is allocated under a lock on the
  latest entry row
"""

from __future__ import annotations

import logging
from datetime import date as date_type

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.services.date_ranges import as_date
from accounting.services.exceptions import (
    AccountNotLeafError,
    EntryValidationError,
    IdempotencyError,
    InvalidEntryTransitionError,
    MissingAccountError,
)
from accounting.services.posting import LinePosting, assert_balanced, money
from accounting.services.sequences import next_value

logger = logging.getLogger(__name__)

MIN_LINES = 2
DESCRIPTION_MAX = 500


def make_reference(reference_type: str | None, reference_id) -> str | None:
    if not reference_type or reference_id in (None, ""):
        return None

    rt = str(reference_type).strip()
    rid = str(reference_id).strip()
    if not rt or not rid:
        return None

    return f"{rt}:{rid}"


def _resolve_account(raw) -> Account:
    if isinstance(raw, Account):
        account = Account.objects.filter(pk=raw.pk, is_active=True).first()
        label = raw.code
    elif isinstance(raw, int):
        account = Account.objects.filter(pk=raw, is_active=True).first()
        label = str(raw)
    elif isinstance(raw, str) and raw.strip():
        label = raw.strip()
        if label.isdigit() and "." not in label:
            account = Account.objects.filter(pk=int(label), is_active=True).first()
        else:
            account = Account.objects.filter(code=label, is_active=True).first()
    else:
        raise EntryValidationError("Posting missing account")

    if account is None:
        raise MissingAccountError([label])
    if not account.accepts_entries:
        raise AccountNotLeafError(account.code)
    return account


def _normalize_lines(lines) -> list[LinePosting]:
    if not lines:
        raise EntryValidationError("Journal entry must contain at least one line")

    normalized: list[LinePosting] = []
    errors: list[str] = []

    for idx, raw in enumerate(lines, start=1):
        line = raw if isinstance(raw, LinePosting) else LinePosting.from_dict(raw)

        if line.debit < 0 or line.credit < 0:
            errors.append(f"Line {idx}: debit or credit cannot be negative")
            continue
        if line.debit > 0 and line.credit > 0:
            errors.append(f"Line {idx}: a line cannot have both debit and credit")
            continue
        if line.debit == 0 and line.credit == 0:
            errors.append(f"Line {idx}: a line must have either debit or credit")
            continue

        # Missing/non-leaf accounts are configuration errors: raise as-is.
        line.account = _resolve_account(line.account)
        normalized.append(line)

    if errors:
        raise EntryValidationError("; ".join(errors), errors=errors)

    return normalized


def _clean_description(description: str) -> str:
    description = (description or "").strip()
    if not description:
        raise EntryValidationError("Journal entry description is required")
    if len(description) > DESCRIPTION_MAX:
        raise EntryValidationError(
            f"Journal entry description cannot exceed {DESCRIPTION_MAX} characters"
        )
    return description


def _lock_accounts(lines: list[LinePosting]) -> None:
    ids = sorted({line.account.pk for line in lines})
    list(Account.objects.select_for_update().filter(pk__in=ids).order_by("pk"))


def _highest_entry_number() -> int:
    return JournalEntry.objects.aggregate(top=Max("entry_number"))["top"] or 0


def _next_entry_number() -> int:
    return next_value("journal_entry", floor=_highest_entry_number)


def _write_lines(entry: JournalEntry, lines: list[LinePosting]) -> None:
    JournalEntryLine.objects.bulk_create(
        [
            JournalEntryLine(
                entry=entry,
                account=line.account,
                debit=money(line.debit),
                credit=money(line.credit),
                description=line.description,
                position=position,
            )
            for position, line in enumerate(lines, start=1)
        ]
    )


def _create_header(
    *,
    entry_date,
    description: str,
    reference: str | None,
    status: str,
    source: str,
    created_by=None,
    reversal_of=None,
) -> JournalEntry:
    if reference and JournalEntry.objects.filter(reference=reference).exists():
        raise IdempotencyError(f"Journal entry already exists for reference {reference}")

    try:
        with transaction.atomic():
            return JournalEntry.objects.create(
                entry_number=_next_entry_number(),
                date=entry_date,
                description=description,
                reference=reference,
                status=status,
                source=source,
                created_by=created_by,
                reversal_of=reversal_of,
                posted_at=timezone.now() if status == JournalEntry.STATUS_POSTED else None,
            )
    except IntegrityError as exc:
        if reference and JournalEntry.objects.filter(reference=reference).exists():
            raise IdempotencyError(
                f"Journal entry already exists for reference {reference}"
            ) from exc
        raise


def _get_locked(entry_id) -> JournalEntry:
    try:
        return JournalEntry.objects.select_for_update().get(pk=entry_id)
    except JournalEntry.DoesNotExist as exc:
        raise EntryValidationError(f"Journal entry {entry_id} not found") from exc


# ============================================================
# PUBLIC API
# ============================================================


@transaction.atomic
def post_entry(
    *,
    date,
    description: str,
    lines,
    reference: str | None = None,
    created_by=None,
    source: str = JournalEntry.SOURCE_AUTOMATIC,
) -> JournalEntry:
    """
    Validate and persist a POSTED journal entry in one transaction.

    Raises UnbalancedEntryError / MissingAccountError / AccountNotLeafError /
    EntryValidationError / IdempotencyError; nothing is written on failure.
    """
    description = _clean_description(description)
    normalized = _normalize_lines(lines)
    if len(normalized) < MIN_LINES:
        raise EntryValidationError(f"Journal entry needs at least {MIN_LINES} lines")

    total_debit, total_credit = assert_balanced(normalized, context=description)

    _lock_accounts(normalized)

    entry = _create_header(
        entry_date=as_date(date or timezone.localdate()),
        description=description,
        reference=(reference or "").strip() or None,
        status=JournalEntry.STATUS_POSTED,
        source=source,
        created_by=created_by,
    )
    _write_lines(entry, normalized)

    logger.info(
        "journal entry posted",
        extra={
            "entry_id": entry.pk,
            "entry_number": entry.entry_number,
            "reference": entry.reference,
            "total": str(total_debit),
        },
    )
    return entry


@transaction.atomic
def create_draft(
    *,
    date,
    description: str,
    lines,
    reference: str | None = None,
    created_by=None,
) -> JournalEntry:
    """
    Persist a DRAFT manual entry. Balance is enforced on confirm_entry().
    """
    description = _clean_description(description)
    normalized = _normalize_lines(lines)
    if len(normalized) < MIN_LINES:
        raise EntryValidationError(f"Journal entry needs at least {MIN_LINES} lines")

    entry = _create_header(
        entry_date=as_date(date or timezone.localdate()),
        description=description,
        reference=(reference or "").strip() or None,
        status=JournalEntry.STATUS_DRAFT,
        source=JournalEntry.SOURCE_MANUAL,
        created_by=created_by,
    )
    _write_lines(entry, normalized)
    return entry


@transaction.atomic
def update_draft(entry_id, *, date=None, description: str | None = None, lines=None) -> JournalEntry:
    entry = _get_locked(entry_id)
    if entry.status != JournalEntry.STATUS_DRAFT:
        raise InvalidEntryTransitionError(
            f"Journal entry #{entry.entry_number} is {entry.status}; only DRAFT entries can be edited"
        )

    update_fields = ["updated_at"]
    if date is not None:
        entry.date = as_date(date)
        update_fields.append("date")
    if description is not None:
        entry.description = _clean_description(description)
        update_fields.append("description")
    entry.save(update_fields=update_fields)

    if lines is not None:
        normalized = _normalize_lines(lines)
        if len(normalized) < MIN_LINES:
            raise EntryValidationError(f"Journal entry needs at least {MIN_LINES} lines")
        entry.lines.all().delete()
        _write_lines(entry, normalized)

    return entry


@transaction.atomic
def confirm_entry(entry_id) -> JournalEntry:
    """
    DRAFT -> POSTED. Permanent; requires a balanced entry.
    """
    entry = _get_locked(entry_id)
    if entry.status != JournalEntry.STATUS_DRAFT:
        raise InvalidEntryTransitionError(
            f"Journal entry #{entry.entry_number} is {entry.status}; only DRAFT entries can be confirmed"
        )

    existing = [
        LinePosting(
            account=line.account,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
        )
        for line in entry.lines.select_related("account").order_by("position", "id")
    ]
    normalized = _normalize_lines(existing)
    if len(normalized) < MIN_LINES:
        raise EntryValidationError(f"Journal entry needs at least {MIN_LINES} lines")
    assert_balanced(normalized, context=f"Asiento #{entry.entry_number}")

    _lock_accounts(normalized)

    entry.status = JournalEntry.STATUS_POSTED
    entry.posted_at = timezone.now()
    entry.save(update_fields=["status", "posted_at", "updated_at"])

    logger.info(
        "journal entry confirmed",
        extra={"entry_id": entry.pk, "entry_number": entry.entry_number},
    )
    return entry


@transaction.atomic
def delete_draft(entry_id) -> None:
    entry = _get_locked(entry_id)
    if entry.status != JournalEntry.STATUS_DRAFT:
        raise InvalidEntryTransitionError(
            f"Journal entry #{entry.entry_number} is {entry.status}; only DRAFT entries can be deleted"
        )
    number = entry.entry_number
    entry.delete()
    logger.info("draft journal entry deleted", extra={"entry_number": number})


@transaction.atomic
def void_entry(entry_id, *, reason: str = "", user=None, on_date: date_type | None = None) -> JournalEntry:
    """
    POSTED -> VOIDED through a reversing entry (debits and credits swapped).

    Returns the reversing entry.
    """
    entry = _get_locked(entry_id)
    if entry.status != JournalEntry.STATUS_POSTED:
        raise InvalidEntryTransitionError(
            f"Journal entry #{entry.entry_number} is {entry.status}; only POSTED entries can be voided"
        )

    reversed_lines = [
        LinePosting(
            account=line.account,
            debit=line.credit,
            credit=line.debit,
            description=f"Reversión: {line.description}".strip()[:255],
        )
        for line in entry.lines.select_related("account").order_by("position", "id")
    ]
    _lock_accounts(reversed_lines)

    reversal = _create_header(
        entry_date=as_date(on_date or timezone.localdate()),
        description=f"Anulación asiento #{entry.entry_number}: {entry.description}"[:DESCRIPTION_MAX],
        reference=make_reference("VOID", entry.entry_number),
        status=JournalEntry.STATUS_POSTED,
        source=entry.source,
        created_by=user,
        reversal_of=entry,
    )
    _write_lines(reversal, reversed_lines)

    entry.status = JournalEntry.STATUS_VOIDED
    entry.voided_at = timezone.now()
    entry.void_reason = (reason or "").strip()[:255]
    entry.save(update_fields=["status", "voided_at", "void_reason", "updated_at"])

    logger.info(
        "journal entry voided",
        extra={
            "entry_id": entry.pk,
            "entry_number": entry.entry_number,
            "reversal_entry_number": reversal.entry_number,
        },
    )
    return reversal
