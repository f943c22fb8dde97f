"""External Provider Protocols.

Capabilities the billing engine calls but does not implement.
"""

from typing import Protocol, runtime_checkable

from .config import Currency
from .models import Invoice, Money


@runtime_checkable
class PaymentProvider(Protocol):
    """Charges invoices against the customer's account."""

    def charge(self, invoice: Invoice) -> bool:
        """Charge a customer's account the amount from the invoice.

        Returns:
            True when the customer account was successfully charged,
            False when the account balance did not allow the charge.

        Raises:
            CustomerNotFoundError: no customer has the given id.
            CurrencyMismatchError: the invoice currency does not match
                the customer account.
            NetworkError: a network error happened.
        """
        ...


@runtime_checkable
class CurrencyProvider(Protocol):
    """Converts money between currencies."""

    def convert(self, money: Money, to: Currency) -> Money:
        """Convert money to the target currency.

        Raises:
            NetworkError: a network error happened.
        """
        ...
