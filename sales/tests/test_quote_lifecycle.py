# sales/tests/test_quote_lifecycle.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from permissions.roles import ROLE_VENDEDOR
from sales.models import Customer, Quote
from sales.services.exceptions import InvalidQuoteTransitionError, SalesError
from sales.services.quote_lifecycle import ALLOWED_TRANSITIONS, can_transition, change_quote_status
from sales.services.quote_service import QuoteLineInput, create_quote, update_quote

User = get_user_model()


class QuoteLifecycleTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="vendedor@example.com", password="x", role=ROLE_VENDEDOR)
        self.customer = Customer.objects.create(name="Cliente Uno")
        self.quote = create_quote(
            customer=self.customer,
            items=[
                QuoteLineInput(description="Brida 2\"", quantity=Decimal("4"), unit_price=Decimal("25.50")),
                QuoteLineInput(
                    description="Brida 2\" acero inoxidable",
                    quantity=Decimal("4"),
                    unit_price=Decimal("80.00"),
                    is_alternative=True,
                ),
            ],
            user=self.user,
        )

    def test_new_quote_is_numbered_draft_and_totals_main_lines(self):
        second = create_quote(
            customer=self.customer,
            items=[QuoteLineInput(description="Codo", quantity=Decimal("1"), unit_price=Decimal("1"))],
        )

        self.assertEqual(self.quote.status, Quote.STATUS_DRAFT)
        self.assertEqual(self.quote.number, "COT-000001")
        self.assertEqual(second.number, "COT-000002")
        self.assertEqual(self.quote.subtotal, Decimal("102.00"))

    def test_terminal_statuses_have_no_exits(self):
        self.assertEqual(ALLOWED_TRANSITIONS[Quote.STATUS_REJECTED], set())
        self.assertEqual(ALLOWED_TRANSITIONS[Quote.STATUS_EXPIRED], set())
        self.assertFalse(can_transition(Quote.STATUS_SENT, Quote.STATUS_CONVERTED))
        self.assertTrue(can_transition(Quote.STATUS_CONVERTED, Quote.STATUS_ACCEPTED))

    def test_rejected_quote_cannot_be_reopened(self):
        change_quote_status(self.quote.pk, Quote.STATUS_REJECTED, user=self.user, notes="Precio alto")

        with self.assertRaises(InvalidQuoteTransitionError):
            change_quote_status(self.quote.pk, Quote.STATUS_DRAFT, user=self.user)

    def test_every_change_is_recorded(self):
        change_quote_status(self.quote.pk, Quote.STATUS_SENT, user=self.user)
        change_quote_status(self.quote.pk, Quote.STATUS_ACCEPTED, user=self.user, notes="OK por mail")

        history = list(self.quote.status_history.values_list("from_status", "to_status"))
        self.assertEqual(
            history,
            [
                (Quote.STATUS_DRAFT, Quote.STATUS_SENT),
                (Quote.STATUS_SENT, Quote.STATUS_ACCEPTED),
            ],
        )
        self.quote.refresh_from_db()
        self.assertIsNotNone(self.quote.responded_at)
        self.assertEqual(self.quote.response_notes, "OK por mail")

    def test_revert_to_draft_clears_customer_response(self):
        change_quote_status(self.quote.pk, Quote.STATUS_ACCEPTED, user=self.user, notes="Aceptada")

        quote = change_quote_status(self.quote.pk, Quote.STATUS_DRAFT, user=self.user, notes="Cambio de precios")

        self.assertIsNone(quote.responded_at)
        self.assertEqual(quote.response_notes, "")
        self.assertEqual(quote.status_history.count(), 2)

    def test_only_draft_quotes_are_editable(self):
        update_quote(
            self.quote.pk,
            items=[QuoteLineInput(description="Brida 3\"", quantity=Decimal("2"), unit_price=Decimal("40"))],
        )
        self.quote.refresh_from_db()
        self.assertEqual(self.quote.subtotal, Decimal("80.00"))
        self.assertEqual(self.quote.items.count(), 1)

        change_quote_status(self.quote.pk, Quote.STATUS_SENT, user=self.user)
        with self.assertRaises(SalesError):
            update_quote(self.quote.pk, notes="tarde")

    def test_accepted_quote_can_still_be_rejected(self):
        change_quote_status(self.quote.pk, Quote.STATUS_ACCEPTED, user=self.user, notes="Aceptada por teléfono")

        quote = change_quote_status(self.quote.pk, Quote.STATUS_REJECTED, user=self.user, notes="Compró a otro proveedor")

        self.assertEqual(quote.status, Quote.STATUS_REJECTED)
        self.assertIsNotNone(quote.responded_at)
        self.assertEqual(quote.response_notes, "Compró a otro proveedor")
        last = quote.status_history.order_by("-id").first()
        self.assertEqual((last.from_status, last.to_status), (Quote.STATUS_ACCEPTED, Quote.STATUS_REJECTED))
        self.assertTrue(can_transition(Quote.STATUS_ACCEPTED, Quote.STATUS_REJECTED))
