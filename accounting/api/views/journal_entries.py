# accounting/api/views/journal_entries.py

"""
======================================================
PATH: accounting/api/views/journal_entries.py
======================================================
JOURNAL ENTRIES API (MANUAL ASIENTOS)

GET    /api/accounting/journal-entries/               list (?status, ?source, ?date_from, ?date_to, ?q, ?reference, ?account)
POST   /api/accounting/journal-entries/               create DRAFT (or POSTED with post_immediately=true)
GET    /api/accounting/journal-entries/<id>/          detail with lines
PUT    /api/accounting/journal-entries/<id>/          edit DRAFT (PATCH for partial edits)
DELETE /api/accounting/journal-entries/<id>/          delete DRAFT
POST   /api/accounting/journal-entries/<id>/confirm/  DRAFT -> POSTED
POST   /api/accounting/journal-entries/<id>/void/     POSTED -> VOIDED (reversing entry)

Security:
- reads require CAP_LEDGER_VIEW
- every write requires CAP_LEDGER_POST (admin / contador)

All ledger rules live in journal_entry_service; domain failures map to 400.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.filters import JournalEntryFilter
from accounting.api.serializers import (
    JournalEntrySerializer,
    JournalEntryUpdateSerializer,
    JournalEntryWriteSerializer,
    VoidEntrySerializer,
)
from accounting.models.journal import JournalEntry
from accounting.services import journal_entry_service
from accounting.services.exceptions import LedgerError
from backend.exceptions import domain_error_response
from permissions.roles import CAP_LEDGER_POST, CAP_LEDGER_VIEW, HasCapability

READ_ACTIONS = {"list", "retrieve"}


def _lines_payload(lines) -> list[dict]:
    return [
        {
            "account": line["account"],
            "debit": line.get("debit"),
            "credit": line.get("credit"),
            "description": line.get("description", ""),
        }
        for line in lines
    ]


@extend_schema(tags=["accounting"])
class JournalEntryViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = JournalEntrySerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filter_backends = [DjangoFilterBackend]
    filterset_class = JournalEntryFilter

    @property
    def required_capability(self):
        return CAP_LEDGER_VIEW if self.action in READ_ACTIONS else CAP_LEDGER_POST

    def get_queryset(self):
        return (
            JournalEntry.objects.all()
            .select_related("reversal_of", "created_by")
            .prefetch_related("lines__account")
            .order_by("-date", "-entry_number")
        )

    def _render(self, entry_id, code=status.HTTP_200_OK):
        entry = self.get_queryset().get(pk=entry_id)
        return Response(JournalEntrySerializer(entry).data, status=code)

    @extend_schema(request=JournalEntryWriteSerializer, responses={201: JournalEntrySerializer})
    def create(self, request, *args, **kwargs):
        ser = JournalEntryWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        params = {
            "date": data["date"],
            "description": data["description"],
            "lines": _lines_payload(data["lines"]),
            "reference": data.get("reference"),
            "created_by": request.user,
        }

        try:
            if data.get("post_immediately"):
                entry = journal_entry_service.post_entry(
                    source=JournalEntry.SOURCE_MANUAL, **params
                )
            else:
                entry = journal_entry_service.create_draft(**params)
        except LedgerError as exc:
            return domain_error_response(exc)

        return self._render(entry.pk, status.HTTP_201_CREATED)

    @extend_schema(request=JournalEntryUpdateSerializer, responses={200: JournalEntrySerializer})
    def update(self, request, *args, **kwargs):
        return self.partial_update(request, *args, **kwargs)

    @extend_schema(request=JournalEntryUpdateSerializer, responses={200: JournalEntrySerializer})
    def partial_update(self, request, *args, **kwargs):
        entry = self.get_object()

        ser = JournalEntryUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        lines = data.get("lines")
        try:
            journal_entry_service.update_draft(
                entry.pk,
                date=data.get("date"),
                description=data.get("description"),
                lines=_lines_payload(lines) if lines is not None else None,
            )
        except LedgerError as exc:
            return domain_error_response(exc)

        return self._render(entry.pk)

    @extend_schema(responses={204: None})
    def destroy(self, request, *args, **kwargs):
        entry = self.get_object()
        try:
            journal_entry_service.delete_draft(entry.pk)
        except LedgerError as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: JournalEntrySerializer})
    @action(detail=True, methods=["post"], url_path="confirm")
    def confirm(self, request, pk=None):
        entry = self.get_object()
        try:
            journal_entry_service.confirm_entry(entry.pk)
        except LedgerError as exc:
            return domain_error_response(exc)
        return self._render(entry.pk)

    @extend_schema(request=VoidEntrySerializer, responses={200: JournalEntrySerializer})
    @action(detail=True, methods=["post"], url_path="void")
    def void(self, request, pk=None):
        entry = self.get_object()

        ser = VoidEntrySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            reversal = journal_entry_service.void_entry(
                entry.pk,
                reason=ser.validated_data.get("reason", ""),
                user=request.user,
                on_date=ser.validated_data.get("date"),
            )
        except LedgerError as exc:
            return domain_error_response(exc)

        return self._render(reversal.pk)
