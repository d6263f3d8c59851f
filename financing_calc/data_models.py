"""Data models for the financing calculator.

This module defines the values exchanged with the amortization engine: the
loan terms a caller supplies, the rows and summary of an amortization table,
the payment records of a loan's history and the results of balance
reconciliation and early-payment simulation. All of them are plain values;
the engine builds them inside a single call and keeps nothing between calls.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AmortizationMethod(str, Enum):
    """Amortization convention of a financing.

    ``SAC`` keeps the principal share of every installment constant, so the
    installment shrinks as interest on the falling balance shrinks. ``PRICE``
    (French system) keeps the installment constant and shifts its split from
    interest towards principal over time.
    """

    SAC = "sac"
    PRICE = "price"


class EarlyPaymentPreference(str, Enum):
    """What the borrower wants an extra payment to buy."""

    SHORTEN_TERM = "shorten_term"
    REDUCE_PAYMENT = "reduce_payment"


@dataclass(frozen=True)
class LoanTerms:
    """Terms of a financing as supplied by the caller.

    Attributes
    ----------
    principal: Decimal
        Financed amount.
    periodic_rate: Decimal
        Interest rate applied once per period, as a fraction (``0.01`` is 1 %
        per month). It is used as-is, never annualized.
    term_periods: int
        Number of installments.
    method: AmortizationMethod
        SAC or Price.
    start_date: date
        Origination date; installment ``i`` falls due ``i`` months later.
    """

    principal: Decimal
    periodic_rate: Decimal
    term_periods: int
    method: AmortizationMethod
    start_date: date


@dataclass(frozen=True)
class AmortizationRow:
    """One installment of an amortization table."""

    installment_number: int
    due_date: date
    payment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class AmortizationSummary:
    total_payments: Decimal
    total_interest: Decimal
    total_amortization: Decimal
    principal: Decimal


@dataclass(frozen=True)
class PaymentRecord:
    """A payment already made against a financing.

    ``installment_number`` is ``None`` for an out-of-schedule (early) payment.
    Amounts may describe a partial payment of the installment.
    """

    installment_number: Optional[int]
    payment_amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal


@dataclass(frozen=True)
class BalanceProjection:
    current_balance: Decimal
    paid_installments: int
    total_paid: Decimal
    total_interest_paid: Decimal
    remaining_installments: int
    percentage_paid: Decimal


@dataclass(frozen=True)
class EarlyPaymentResult:
    """Outcome of simulating an extra payment on the outstanding balance.

    ``original_payment`` and ``original_term`` describe the loan before the
    extra payment; ``new_payment`` and ``new_term`` after it. For SAC loans the
    payments are those of the first remaining installment, the largest one.
    """

    original_principal: Decimal
    early_payment_amount: Decimal
    new_principal: Decimal
    interest_saved: Decimal
    new_payment: Decimal
    new_term: int
    original_payment: Decimal
    original_term: int

    @property
    def periods_saved(self) -> int:
        return self.original_term - self.new_term
