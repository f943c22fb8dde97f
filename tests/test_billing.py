"""Tests for the billing domain: config, models, stores and services."""

import random
from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.billing.config import (
    BillingConfig,
    Currency,
    DEFAULT_BILLING_CONFIG,
    InvoiceStatus,
    RetryDecision,
)
from src.billing.exceptions import (
    BillingError,
    BillingRunInProgressError,
    CurrencyMismatchError,
    CustomerNotFoundError,
    EntityNotFoundError,
    InvalidStateError,
    InvoiceBusyError,
    InvoiceNotFoundError,
    InvoiceNotPendingError,
    NetworkError,
    PaymentProviderError,
)
from src.billing.mock import (
    EUR_RATES,
    FixedRateCurrencyProvider,
    MockPaymentProvider,
    seed_demo_data,
)
from src.billing.models import (
    BillingRunReport,
    Customer,
    Invoice,
    InvoicePaymentAction,
    Money,
)
from src.billing.providers import CurrencyProvider, PaymentProvider
from src.billing.retry import classify_failure, compute_backoff
from src.billing.store import (
    CustomerStore,
    InMemoryCustomerStore,
    InMemoryInvoiceStore,
    InvoiceStore,
)


# ── Config Tests ──────────────────────────────────────────────────────


class TestBillingConfig:
    def test_currency_values(self):
        assert [c.value for c in Currency] == ["EUR", "USD", "DKK", "SEK", "GBP"]

    def test_invoice_status_count(self):
        assert len(InvoiceStatus) == 4

    def test_terminal_statuses(self):
        assert InvoiceStatus.PAID.is_terminal
        assert InvoiceStatus.FAILED.is_terminal
        assert not InvoiceStatus.PENDING.is_terminal
        assert not InvoiceStatus.PROCESSING.is_terminal

    def test_retry_decision_values(self):
        assert RetryDecision.RETRY.value == "retry"
        assert RetryDecision.RECOVER.value == "recover"
        assert RetryDecision.TERMINAL.value == "terminal"

    def test_defaults(self):
        cfg = DEFAULT_BILLING_CONFIG
        assert cfg.max_retries == 3
        assert cfg.backoff_min_seconds == 1.0
        assert cfg.backoff_max_seconds == 2.0
        assert cfg.billing_day_of_month == 1
        assert cfg.gate_check_interval_seconds == 86400.0

    def test_zero_retries_rejected(self):
        with pytest.raises(ValueError):
            BillingConfig(max_retries=0)

    def test_inverted_backoff_rejected(self):
        with pytest.raises(ValueError):
            BillingConfig(backoff_min_seconds=3.0, backoff_max_seconds=1.0)

    def test_negative_backoff_rejected(self):
        with pytest.raises(ValueError):
            BillingConfig(backoff_min_seconds=-1.0)

    @pytest.mark.parametrize("day", [0, 29, 31])
    def test_billing_day_out_of_range(self, day):
        with pytest.raises(ValueError):
            BillingConfig(billing_day_of_month=day)

    def test_non_positive_gate_interval_rejected(self):
        with pytest.raises(ValueError):
            BillingConfig(gate_check_interval_seconds=0)

    def test_from_settings(self):
        settings = SimpleNamespace(
            max_retries=5,
            retry_backoff_min_seconds=0.1,
            retry_backoff_max_seconds=0.2,
            billing_day_of_month=15,
            gate_check_interval_seconds=3600.0,
        )
        cfg = BillingConfig.from_settings(settings)
        assert cfg.max_retries == 5
        assert cfg.backoff_min_seconds == 0.1
        assert cfg.backoff_max_seconds == 0.2
        assert cfg.billing_day_of_month == 15
        assert cfg.gate_check_interval_seconds == 3600.0


# ── Model Tests ───────────────────────────────────────────────────────


class TestMoney:
    def test_coerces_str_and_int(self):
        assert Money("12.50", Currency.EUR).amount == Decimal("12.50")
        assert Money(7, Currency.EUR).amount == Decimal(7)

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            Money(1.5, Currency.EUR)

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            Money(Decimal("NaN"), Currency.EUR)

    def test_is_compatible(self):
        eur = Money("1", Currency.EUR)
        assert eur.is_compatible(Money("2", Currency.EUR))
        assert not eur.is_compatible(Money("2", Currency.USD))

    def test_to_dict_keeps_precision(self):
        assert Money(Decimal("0.10"), Currency.SEK).to_dict() == {"value": "0.10", "currency": "SEK"}


class TestInvoice:
    def test_default_status_is_pending(self):
        inv = Invoice(1, 1, Money("10", Currency.EUR))
        assert inv.status == InvoiceStatus.PENDING

    def test_with_status_returns_copy(self):
        inv = Invoice(1, 1, Money("10", Currency.EUR))
        paid = inv.with_status(InvoiceStatus.PAID)
        assert paid.status == InvoiceStatus.PAID
        assert inv.status == InvoiceStatus.PENDING

    def test_with_amount_keeps_identity(self):
        inv = Invoice(1, 2, Money("10", Currency.EUR))
        converted = inv.with_amount(Money("74.60", Currency.DKK))
        assert converted.id == 1
        assert converted.customer_id == 2
        assert converted.amount.currency == Currency.DKK

    def test_immutable(self):
        inv = Invoice(1, 1, Money("10", Currency.EUR))
        with pytest.raises(Exception):
            inv.status = InvoiceStatus.PAID

    def test_to_dict(self):
        d = Invoice(3, 4, Money("9.99", Currency.GBP), InvoiceStatus.FAILED).to_dict()
        assert d == {
            "id": 3,
            "customer_id": 4,
            "amount": {"value": "9.99", "currency": "GBP"},
            "status": "FAILED",
        }

    def test_action_to_dict(self):
        inv = Invoice(1, 1, Money("10", Currency.EUR), InvoiceStatus.PAID)
        d = InvoicePaymentAction(inv, True).to_dict()
        assert d["charged"] is True
        assert d["invoice"]["status"] == "PAID"


class TestBillingRunReport:
    def test_success_rate(self):
        report = BillingRunReport(run_id="run-1", total=4, succeeded=3, failed=1)
        assert report.success_rate == 0.75

    def test_success_rate_empty_run(self):
        assert BillingRunReport(run_id="run-1").success_rate == 0.0

    def test_to_dict(self):
        d = BillingRunReport(run_id="run-1", total=2, succeeded=1, failed=1).to_dict()
        assert d["run_id"] == "run-1"
        assert d["finished_at"] is None
        assert d["actions"] == []


# ── Exception Tests ───────────────────────────────────────────────────


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(InvoiceNotFoundError, EntityNotFoundError)
        assert issubclass(CustomerNotFoundError, EntityNotFoundError)
        assert issubclass(InvoiceNotPendingError, InvalidStateError)
        assert issubclass(InvoiceBusyError, InvalidStateError)
        assert issubclass(BillingRunInProgressError, InvalidStateError)
        assert issubclass(CurrencyMismatchError, PaymentProviderError)
        assert issubclass(NetworkError, PaymentProviderError)
        for cls in (EntityNotFoundError, InvalidStateError, PaymentProviderError):
            assert issubclass(cls, BillingError)

    def test_status_codes(self):
        assert InvoiceNotFoundError(1).status_code == 404
        assert CustomerNotFoundError(1).status_code == 404
        assert InvoiceNotPendingError(1).status_code == 409
        assert BillingRunInProgressError().status_code == 409
        assert CurrencyMismatchError(1, 2).status_code == 502
        assert NetworkError().status_code == 503

    def test_messages(self):
        assert InvoiceNotFoundError(7).message == "Invoice '7' was not found"
        assert CustomerNotFoundError(8).message == "Customer '8' was not found"
        assert InvoiceNotPendingError(9).message == "Invoice '9' not in pending state"

    def test_not_found_carries_entity(self):
        exc = CustomerNotFoundError(42)
        assert exc.entity == "Customer"
        assert exc.entity_id == 42

    def test_run_in_progress_mentions_run(self):
        assert "run-abc" in BillingRunInProgressError("run-abc").message


# ── Retry Policy Tests ────────────────────────────────────────────────


class TestRetryPolicy:
    def test_network_error_retries(self):
        assert classify_failure(NetworkError()) == RetryDecision.RETRY

    def test_currency_mismatch_recovers(self):
        assert classify_failure(CurrencyMismatchError(1, 1)) == RetryDecision.RECOVER

    def test_customer_not_found_is_terminal(self):
        assert classify_failure(CustomerNotFoundError(1)) == RetryDecision.TERMINAL

    def test_unknown_error_is_terminal(self):
        assert classify_failure(RuntimeError("boom")) == RetryDecision.TERMINAL

    def test_backoff_within_bounds(self):
        rng = random.Random(7)
        for _ in range(50):
            delay = compute_backoff(DEFAULT_BILLING_CONFIG, rng)
            assert 1.0 <= delay <= 2.0

    def test_backoff_fixed_when_bounds_equal(self):
        cfg = BillingConfig(backoff_min_seconds=0.5, backoff_max_seconds=0.5)
        assert compute_backoff(cfg) == 0.5


# ── Store Tests ───────────────────────────────────────────────────────


class TestInMemoryStores:
    def test_satisfy_protocols(self, invoices, customers):
        assert isinstance(invoices, InvoiceStore)
        assert isinstance(customers, CustomerStore)

    def test_fetch_missing_returns_none(self, invoices, customers):
        assert invoices.fetch(999) is None
        assert customers.fetch(999) is None

    def test_fetch_all_sorted(self):
        store = InMemoryInvoiceStore([
            Invoice(3, 1, Money("1", Currency.EUR)),
            Invoice(1, 1, Money("1", Currency.EUR)),
        ])
        assert [i.id for i in store.fetch_all()] == [1, 3]

    def test_fetch_all_by_status(self, invoices):
        pending = invoices.fetch_all_by_status(InvoiceStatus.PENDING)
        assert [i.id for i in pending] == [1, 2, 3, 5]

    def test_set_status(self, invoices):
        updated = invoices.set_status(1, InvoiceStatus.PROCESSING)
        assert updated.status == InvoiceStatus.PROCESSING
        assert invoices.fetch(1).status == InvoiceStatus.PROCESSING

    def test_set_status_missing(self, invoices):
        assert invoices.set_status(999, InvoiceStatus.PAID) is None

    def test_set_status_expected_matches(self, invoices):
        updated = invoices.set_status(1, InvoiceStatus.PROCESSING, expected=InvoiceStatus.PENDING)
        assert updated.status == InvoiceStatus.PROCESSING

    def test_set_status_expected_mismatch(self, invoices):
        assert invoices.set_status(4, InvoiceStatus.PROCESSING, expected=InvoiceStatus.PENDING) is None
        assert invoices.fetch(4).status == InvoiceStatus.PAID

    def test_duplicate_rejected(self, invoices, customers):
        with pytest.raises(ValueError):
            invoices.add(Invoice(1, 1, Money("1", Currency.EUR)))
        with pytest.raises(ValueError):
            customers.add(Customer(1, Currency.EUR))

    def test_len(self, invoices, customers):
        assert len(invoices) == 5
        assert len(customers) == 3


# ── Service Tests ─────────────────────────────────────────────────────


class TestInvoiceService:
    def test_fetch(self, invoice_service):
        assert invoice_service.fetch(2).amount.currency == Currency.USD

    def test_fetch_missing_raises(self, invoice_service):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.fetch(999)

    def test_fetch_all_with_status(self, invoice_service):
        paid = invoice_service.fetch_all_with_status(InvoiceStatus.PAID)
        assert [i.id for i in paid] == [4]

    def test_transitions(self, invoice_service):
        assert invoice_service.mark_processing(1).status == InvoiceStatus.PROCESSING
        assert invoice_service.mark_paid(1).status == InvoiceStatus.PAID
        assert invoice_service.mark_failed(2).status == InvoiceStatus.FAILED

    def test_mark_processing_requires_pending(self, invoice_service, invoices):
        with pytest.raises(InvoiceNotPendingError):
            invoice_service.mark_processing(4)
        assert invoices.fetch(4).status == InvoiceStatus.PAID

    def test_mark_processing_missing_raises(self, invoice_service):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.mark_processing(999)

    def test_transition_missing_raises(self, invoice_service):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.mark_paid(999)

    def test_statistics(self, invoice_service):
        stats = invoice_service.get_statistics()
        assert stats["total_invoices"] == 5
        assert stats["by_status"] == {"PENDING": 4, "PROCESSING": 0, "PAID": 1, "FAILED": 0}
        assert stats["collected"] == {"EUR": "75.00"}
        assert stats["outstanding"] == {"EUR": "115.00", "USD": "250.50"}


class TestCustomerService:
    def test_fetch(self, customer_service):
        assert customer_service.fetch(3).currency == Currency.DKK

    def test_fetch_missing_raises(self, customer_service):
        with pytest.raises(CustomerNotFoundError):
            customer_service.fetch(999)

    def test_fetch_all(self, customer_service):
        assert [c.id for c in customer_service.fetch_all()] == [1, 2, 3]


# ── Simulated Provider Tests ──────────────────────────────────────────


class TestMockPaymentProvider:
    def test_satisfies_protocol(self, customers):
        assert isinstance(MockPaymentProvider(customers), PaymentProvider)

    def test_always_succeeds(self, customers, invoices):
        provider = MockPaymentProvider(customers, success_rate=1.0)
        assert provider.charge(invoices.fetch(1)) is True
        assert provider.call_count == 1

    def test_always_declines(self, customers, invoices):
        provider = MockPaymentProvider(customers, success_rate=0.0)
        assert provider.charge(invoices.fetch(1)) is False

    def test_unknown_customer(self, customers, invoices):
        with pytest.raises(CustomerNotFoundError):
            MockPaymentProvider(customers).charge(invoices.fetch(5))

    def test_currency_mismatch(self, customers, invoices):
        with pytest.raises(CurrencyMismatchError):
            MockPaymentProvider(customers).charge(invoices.fetch(3))

    def test_network_error(self, customers, invoices):
        provider = MockPaymentProvider(customers, network_error_rate=1.0)
        with pytest.raises(NetworkError):
            provider.charge(invoices.fetch(1))

    def test_invalid_rates(self, customers):
        with pytest.raises(ValueError):
            MockPaymentProvider(customers, success_rate=1.5)
        with pytest.raises(ValueError):
            MockPaymentProvider(customers, network_error_rate=-0.1)


class TestFixedRateCurrencyProvider:
    def test_satisfies_protocol(self):
        assert isinstance(FixedRateCurrencyProvider(), CurrencyProvider)

    def test_convert_from_eur(self):
        converted = FixedRateCurrencyProvider().convert(Money("10.00", Currency.EUR), Currency.DKK)
        assert converted == Money(Decimal("74.60"), Currency.DKK)

    def test_convert_through_eur(self):
        converted = FixedRateCurrencyProvider().convert(Money("108.00", Currency.USD), Currency.GBP)
        assert converted.currency == Currency.GBP
        assert converted.amount == Decimal("85.00")

    def test_same_currency_unchanged(self):
        money = Money("10.00", Currency.SEK)
        assert FixedRateCurrencyProvider().convert(money, Currency.SEK) is money

    def test_missing_rate(self):
        provider = FixedRateCurrencyProvider(rates={Currency.EUR: Decimal("1")})
        with pytest.raises(ValueError):
            provider.convert(Money("1", Currency.EUR), Currency.USD)

    def test_network_error(self):
        provider = FixedRateCurrencyProvider(network_error_rate=1.0)
        with pytest.raises(NetworkError):
            provider.convert(Money("1", Currency.EUR), Currency.USD)

    def test_rate_table(self):
        assert set(EUR_RATES) == set(Currency)
        assert EUR_RATES[Currency.EUR] == Decimal("1")


class TestSeedDemoData:
    def test_counts(self):
        invoices, customers = seed_demo_data(customer_count=10, invoices_per_customer=4, rng=random.Random(1))
        assert len(customers) == 10
        assert len(invoices) == 40

    def test_last_invoice_per_customer_pending(self):
        invoices, _ = seed_demo_data(customer_count=5, invoices_per_customer=3, rng=random.Random(1))
        pending = invoices.fetch_all_by_status(InvoiceStatus.PENDING)
        assert len(pending) == 5
        assert sorted(i.customer_id for i in pending) == [1, 2, 3, 4, 5]

    def test_deterministic_with_seed(self):
        first, _ = seed_demo_data(customer_count=5, rng=random.Random(3))
        second, _ = seed_demo_data(customer_count=5, rng=random.Random(3))
        assert first.fetch_all() == second.fetch_all()

    def test_no_mismatch_when_rate_zero(self):
        invoices, customers = seed_demo_data(customer_count=20, mismatch_rate=0.0, rng=random.Random(2))
        for inv in invoices.fetch_all():
            assert inv.amount.currency == customers.fetch(inv.customer_id).currency
