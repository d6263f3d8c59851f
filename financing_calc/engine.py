"""Core calculation engine for the financing calculator.

This module implements the financial logic behind financings amortized under
the SAC (constant principal) and Price (constant installment) systems. It
builds amortization tables, reconciles the outstanding balance against the
payments actually recorded and simulates the effect of an extra payment.

Every function is pure: inputs are plain numbers and dates, results are the
value objects from :mod:`financing_calc.data_models`. Money is rounded to
cents per period with ``ROUND_HALF_UP``; the last installment absorbs whatever
rounding drift is left so the schedule always closes at exactly zero.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .data_models import (
    AmortizationMethod,
    AmortizationRow,
    AmortizationSummary,
    BalanceProjection,
    EarlyPaymentPreference,
    EarlyPaymentResult,
    PaymentRecord,
)
from .errors import InvalidLoanTermsError
from .utils import Numeric, ZERO, add_months, parse_date, round_money, to_decimal

logger = logging.getLogger(__name__)

MethodLike = Union[AmortizationMethod, str]
PreferenceLike = Union[EarlyPaymentPreference, str]


def _coerce_method(method: MethodLike) -> AmortizationMethod:
    if isinstance(method, AmortizationMethod):
        return method
    try:
        return AmortizationMethod(str(method).strip().lower())
    except ValueError as exc:
        raise InvalidLoanTermsError(f"Unknown amortization method: {method!r}") from exc


def _coerce_preference(preference: PreferenceLike) -> Optional[EarlyPaymentPreference]:
    if isinstance(preference, EarlyPaymentPreference):
        return preference
    try:
        return EarlyPaymentPreference(str(preference).strip().lower())
    except ValueError:
        return None


def _coerce_date(value: Union[date, str]) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_date(str(value))
    except ValueError as exc:
        raise InvalidLoanTermsError(str(exc)) from exc


def _check_terms(
    principal: Numeric, periodic_rate: Numeric, term_periods: int
) -> Tuple[Decimal, Decimal, int]:
    """Validate and normalize the three numeric loan terms."""
    principal_value = round_money(to_decimal(principal, "principal"))
    rate = to_decimal(periodic_rate, "periodic_rate")
    if isinstance(term_periods, bool) or not isinstance(term_periods, int):
        raise InvalidLoanTermsError(
            f"Term must be a whole number of periods, got {term_periods!r}"
        )
    if principal_value <= 0:
        raise InvalidLoanTermsError(f"Principal must be positive, got {principal_value}")
    if term_periods <= 0:
        raise InvalidLoanTermsError(f"Term must be positive, got {term_periods}")
    if rate < 0 or rate >= 1:
        raise InvalidLoanTermsError(
            f"Periodic rate must be in [0, 1), got {rate}"
        )
    return principal_value, rate, term_periods


def _annuity_payment(principal: Decimal, rate: Decimal, term: int) -> Decimal:
    """Return the unrounded constant installment of a Price loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` the periodic rate and ``n`` the number
    of payments. When the rate is zero, the payment simplifies to ``P / n``;
    the same holds for rates too small to move ``(1 + i)^n`` off one at the
    working precision.
    """
    if rate == 0:
        return principal / Decimal(term)
    factor = (1 + rate) ** term
    if factor == 1:
        return principal / Decimal(term)
    return principal * (rate * factor) / (factor - 1)


def _first_payment(
    principal: Decimal, rate: Decimal, term: int, method: AmortizationMethod
) -> Decimal:
    """Rounded first installment, identical to row 1 of the table."""
    if method is AmortizationMethod.SAC:
        return round_money(principal / Decimal(term)) + round_money(principal * rate)
    return round_money(_annuity_payment(principal, rate, term))


def _amortize(
    principal: Decimal,
    rate: Decimal,
    term: int,
    method: AmortizationMethod,
    start_date: date,
) -> Tuple[List[AmortizationRow], AmortizationSummary]:
    if method is AmortizationMethod.SAC:
        constant_principal = round_money(principal / Decimal(term))
    else:
        constant_payment = round_money(_annuity_payment(principal, rate, term))

    rows: List[AmortizationRow] = []
    balance = principal
    total_payments = ZERO
    total_interest = ZERO
    total_amortization = ZERO

    for number in range(1, term + 1):
        interest = round_money(balance * rate)
        if method is AmortizationMethod.SAC:
            principal_part = constant_principal
        else:
            principal_part = constant_payment - interest

        if number == term:
            # Last installment settles whatever rounding left on the balance
            principal_part = balance
        else:
            principal_part = min(principal_part, balance)

        payment = principal_part + interest
        balance -= principal_part

        rows.append(
            AmortizationRow(
                installment_number=number,
                due_date=add_months(start_date, number),
                payment_amount=payment,
                principal_amount=principal_part,
                interest_amount=interest,
                remaining_balance=balance,
            )
        )
        total_payments += payment
        total_interest += interest
        total_amortization += principal_part

    summary = AmortizationSummary(
        total_payments=total_payments,
        total_interest=total_interest,
        total_amortization=total_amortization,
        principal=principal,
    )
    return rows, summary


def _remaining_interest(
    principal: Decimal, rate: Decimal, term: int, method: AmortizationMethod
) -> Decimal:
    """Unrounded interest still to be paid over ``term`` periods.

    SAC charges interest on balances ``P, P(n-1)/n, ..., P/n``, which sum to
    ``P(n+1)/2``. Price pays ``n`` annuities, of which ``P`` is principal.
    """
    if principal <= 0 or term <= 0 or rate == 0:
        return ZERO
    if method is AmortizationMethod.SAC:
        return principal * rate * (term + 1) / 2
    return term * _annuity_payment(principal, rate, term) - principal


def _shortest_term(
    principal: Decimal,
    rate: Decimal,
    max_term: int,
    method: AmortizationMethod,
    ceiling: Decimal,
) -> int:
    """Smallest term whose largest installment does not exceed ``ceiling``.

    Installments only fall as the term grows, so a binary search over
    ``1..max_term`` suffices. Returns ``max_term`` when no shorter term fits.
    """
    if principal <= 0:
        return 0
    low, high = 1, max_term
    while low < high:
        middle = (low + high) // 2
        if _first_payment(principal, rate, middle, method) <= ceiling:
            high = middle
        else:
            low = middle + 1
    return low


def calculate_sac_payment(
    principal: Numeric, periodic_rate: Numeric, term_periods: int
) -> Decimal:
    """Return the first (largest) installment of a SAC loan.

    The principal share is ``principal / term_periods`` in every period and
    interest is charged on the remaining balance, so the first installment is
    ``principal / term_periods + principal * periodic_rate``.

    Raises
    ------
    InvalidLoanTermsError
        If the principal or term is not positive or the rate is outside
        ``[0, 1)``.
    """
    principal_value, rate, term = _check_terms(principal, periodic_rate, term_periods)
    return _first_payment(principal_value, rate, term, AmortizationMethod.SAC)


def calculate_price_payment(
    principal: Numeric, periodic_rate: Numeric, term_periods: int
) -> Decimal:
    """Return the constant installment of a Price (French system) loan.

    A zero rate yields ``principal / term_periods``.

    Raises
    ------
    InvalidLoanTermsError
        If the principal or term is not positive or the rate is outside
        ``[0, 1)``.
    """
    principal_value, rate, term = _check_terms(principal, periodic_rate, term_periods)
    return _first_payment(principal_value, rate, term, AmortizationMethod.PRICE)


def generate_amortization_table(
    principal: Numeric,
    periodic_rate: Numeric,
    term_periods: int,
    method: MethodLike,
    start_date: Union[date, str],
) -> Tuple[List[AmortizationRow], AmortizationSummary]:
    """Compute the full amortization table of a financing.

    Parameters
    ----------
    principal:
        Financed amount.
    periodic_rate:
        Interest rate per period as a fraction, applied as-is.
    term_periods:
        Number of installments.
    method:
        ``AmortizationMethod`` or its name (``"sac"`` / ``"price"``, any case).
    start_date:
        Origination date. Installment ``i`` falls due ``i`` calendar months
        later, keeping the day of month where the month has it.

    Returns
    -------
    rows: List[AmortizationRow]
        Exactly ``term_periods`` rows; the last one has a zero balance.
    summary: AmortizationSummary
        Totals over all rows.
    """
    principal_value, rate, term = _check_terms(principal, periodic_rate, term_periods)
    loan_method = _coerce_method(method)
    first_due = _coerce_date(start_date)
    try:
        add_months(first_due, term)
    except ValueError as exc:
        raise InvalidLoanTermsError(
            f"Schedule starting {first_due.isoformat()} runs past the last supported date"
        ) from exc
    logger.debug(
        "Building %s amortization table: principal=%s rate=%s term=%d",
        loan_method.value,
        principal_value,
        rate,
        term,
    )
    return _amortize(principal_value, rate, term, loan_method, first_due)


def get_installment(rows: List[AmortizationRow], installment_number: int) -> AmortizationRow:
    """Return the scheduled row for ``installment_number`` (1-based)."""
    if not 1 <= installment_number <= len(rows):
        raise InvalidLoanTermsError(
            f"Installment {installment_number} is outside the schedule of {len(rows)} installments"
        )
    return rows[installment_number - 1]


def _coerce_record(record: Union[PaymentRecord, Mapping[str, Any]]) -> PaymentRecord:
    if isinstance(record, PaymentRecord):
        number = record.installment_number
        payment = record.payment_amount
        principal = record.principal_amount
        interest = record.interest_amount
    else:
        number = record.get("installment_number")
        payment = record.get("payment_amount", 0)
        principal = record.get("principal_amount", 0)
        interest = record.get("interest_amount", 0)
    if number is not None:
        try:
            number = int(number)
        except (TypeError, ValueError) as exc:
            raise InvalidLoanTermsError(f"Invalid installment number: {number!r}") from exc
    return PaymentRecord(
        installment_number=number,
        payment_amount=to_decimal(payment, "payment_amount"),
        principal_amount=to_decimal(principal, "principal_amount"),
        interest_amount=to_decimal(interest, "interest_amount"),
    )


def calculate_updated_balance(
    principal: Numeric,
    periodic_rate: Numeric,
    term_periods: int,
    method: MethodLike,
    start_date: Union[date, str],
    payments: Iterable[Union[PaymentRecord, Mapping[str, Any]]],
) -> BalanceProjection:
    """Derive the current state of a financing from its payment history.

    Payments need not line up with the theoretical schedule: they may be
    partial, skipped or out of order, and early payments carry no installment
    number. The principal actually paid is subtracted from the original
    principal; an installment touched by any payment counts once towards
    ``paid_installments``, however much of it was paid.

    Payments may be ``PaymentRecord`` values or mappings with the same keys,
    as loaded from storage.
    """
    rows, summary = generate_amortization_table(
        principal, periodic_rate, term_periods, method, start_date
    )
    scheduled = {row.installment_number for row in rows}

    total_paid = ZERO
    total_interest_paid = ZERO
    principal_paid = ZERO
    touched = set()

    for item in payments:
        record = _coerce_record(item)
        total_paid += record.payment_amount
        total_interest_paid += record.interest_amount
        principal_paid += record.principal_amount
        if record.installment_number is None:
            continue
        if record.installment_number in scheduled:
            touched.add(record.installment_number)
        else:
            logger.warning(
                "Payment refers to installment %d outside a %d-installment schedule",
                record.installment_number,
                len(rows),
            )

    current_balance = max(ZERO, summary.principal - principal_paid)
    paid_installments = len(touched)
    scheduled_cost = summary.principal + summary.total_interest

    return BalanceProjection(
        current_balance=round_money(current_balance),
        paid_installments=paid_installments,
        total_paid=round_money(total_paid),
        total_interest_paid=round_money(total_interest_paid),
        remaining_installments=max(0, len(rows) - paid_installments),
        percentage_paid=round_money(total_paid / scheduled_cost * 100),
    )


def simulate_early_payment(
    current_balance: Numeric,
    periodic_rate: Numeric,
    remaining_periods: int,
    method: MethodLike,
    payment_amount: Numeric,
    preference: PreferenceLike,
) -> EarlyPaymentResult:
    """Simulate an extra payment applied to the outstanding balance.

    With ``SHORTEN_TERM`` the installment stays at the one implied by
    ``current_balance`` over ``remaining_periods`` and the term shrinks to the
    shortest one that installment still covers. With ``REDUCE_PAYMENT`` the
    term stays and the installment is recomputed for the reduced balance.
    ``interest_saved`` compares the interest of the two remaining schedules,
    each taken at full precision; only the difference is rounded to cents.

    The payment amount and preference are not validated: a zero, negative or
    oversized payment produces degenerate numbers, and an unrecognized
    preference leaves the loan unchanged (``new_payment`` zero, no savings).
    Business validation of those inputs belongs to the caller.
    """
    balance, rate, term = _check_terms(current_balance, periodic_rate, remaining_periods)
    loan_method = _coerce_method(method)
    extra = round_money(to_decimal(payment_amount, "payment_amount"))

    new_principal = balance - extra
    original_payment = _first_payment(balance, rate, term, loan_method)
    original_interest = _remaining_interest(balance, rate, term, loan_method)

    choice = _coerce_preference(preference)
    if choice is EarlyPaymentPreference.SHORTEN_TERM:
        new_payment = original_payment
        new_term = _shortest_term(new_principal, rate, term, loan_method, original_payment)
    elif choice is EarlyPaymentPreference.REDUCE_PAYMENT:
        new_term = term
        if new_principal > 0:
            new_payment = _first_payment(new_principal, rate, term, loan_method)
        else:
            new_payment = ZERO
    else:
        logger.warning("Unrecognized early payment preference %r; loan left unchanged", preference)
        return EarlyPaymentResult(
            original_principal=balance,
            early_payment_amount=extra,
            new_principal=new_principal,
            interest_saved=ZERO,
            new_payment=ZERO,
            new_term=term,
            original_payment=original_payment,
            original_term=term,
        )

    new_interest = _remaining_interest(new_principal, rate, new_term, loan_method)
    logger.debug(
        "Simulated %s early payment of %s: term %d -> %d, payment %s -> %s",
        choice.value,
        extra,
        term,
        new_term,
        original_payment,
        new_payment,
    )

    return EarlyPaymentResult(
        original_principal=balance,
        early_payment_amount=extra,
        new_principal=new_principal,
        interest_saved=round_money(original_interest - new_interest),
        new_payment=new_payment,
        new_term=new_term,
        original_payment=original_payment,
        original_term=term,
    )
