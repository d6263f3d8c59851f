"""Command‑line interface for the financing calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Users can print the amortization table of a financing, reconcile
its balance against the installments already paid, or simulate an early
payment. Tables can also be exported to JSON files.
"""

from __future__ import annotations

import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import AmortizationMethod, EarlyPaymentPreference, LoanTerms, PaymentRecord
from .engine import (
    calculate_updated_balance,
    generate_amortization_table,
    get_installment,
    simulate_early_payment,
)
from .errors import InvalidLoanTermsError
from .formatter import (
    print_balance,
    print_schedule,
    print_simulation,
    print_summary,
    serialize_rows,
    serialize_summary,
)
from .utils import parse_date, to_decimal

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> Decimal:
    """Parse a money string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("500,000") and
    shorthand with ``k``/``m`` suffixes (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return to_decimal(value, "amount") * factor
    except InvalidLoanTermsError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_rate(value: str) -> Decimal:
    """Parse a periodic rate ("0.01" or "1%")."""
    value = value.strip()
    percent = value.endswith("%")
    if percent:
        value = value[:-1]
    try:
        rate = to_decimal(value, "rate")
    except InvalidLoanTermsError:
        raise click.BadParameter(f"Invalid rate: {value}")
    return rate / 100 if percent else rate


def parse_payment_strings(values: Tuple[str, ...]) -> List[PaymentRecord]:
    """Parse ``N:PRINCIPAL:INTEREST`` entries; ``N`` may be ``-`` for an early payment."""
    records: List[PaymentRecord] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 3:
            raise click.BadParameter(
                f"Payment must be in N:PRINCIPAL:INTEREST format; got {item}"
            )
        number_str, principal_str, interest_str = parts
        if number_str.strip() in ("", "-"):
            number = None
        else:
            try:
                number = int(number_str)
            except ValueError:
                raise click.BadParameter(f"Invalid installment number: {number_str}")
        principal = parse_amount(principal_str)
        interest = parse_amount(interest_str)
        records.append(
            PaymentRecord(
                installment_number=number,
                payment_amount=principal + interest,
                principal_amount=principal,
                interest_amount=interest,
            )
        )
    return records


def build_terms_from_options(
    principal: str,
    rate: str,
    term: int,
    method: str,
    start_date: str,
) -> LoanTerms:
    try:
        start_dt = parse_date(start_date)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    return LoanTerms(
        principal=parse_amount(principal),
        periodic_rate=parse_rate(rate),
        term_periods=term,
        method=AmortizationMethod(method.lower()),
        start_date=start_dt,
    )


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def loan_options(func):
    """Attach the options shared by every command describing a whole loan."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Financed amount"),
        click.option("--rate", "-r", "rate", required=True, help="Periodic (monthly) interest rate, e.g. 0.01 or 1%"),
        click.option("--term", "-t", "term", required=True, type=int, help="Number of installments"),
        click.option("--method", "method", type=click.Choice(["sac", "price"], case_sensitive=False), default="price", help="Amortization method"),
        click.option("--start-date", "-s", "start_date", required=True, help="Origination date (YYYY-MM or YYYY-MM-DD)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    "--log-level",
    "log_level",
    default=lambda: os.environ.get("FINANCING_CALC_LOG_LEVEL", "WARNING"),
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """A command‑line calculator for SAC and Price financings."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def schedule(
    principal: str,
    rate: str,
    term: int,
    method: str,
    start_date: str,
    output: Optional[str],
) -> None:
    """Compute and print the full amortization table."""
    terms = build_terms_from_options(principal, rate, term, method, start_date)
    try:
        rows, summary = generate_amortization_table(
            terms.principal, terms.periodic_rate, terms.term_periods, terms.method, terms.start_date
        )
    except InvalidLoanTermsError as exc:
        raise click.BadParameter(str(exc))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Unsupported output format; use .json")
        export_to_json(path, {"summary": serialize_summary(summary), "rows": serialize_rows(rows)})
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(summary, rows)
    # Limit schedule length printed to avoid flooding the terminal
    if len(rows) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(rows)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(rows[:MAX_PRINTED_ROWS])
    else:
        print_schedule(rows)


@cli.command()
@loan_options
@click.option("--paid", "paid", multiple=True, type=int, help="Installment paid in full as scheduled")
@click.option("--payment", "payment", multiple=True, help="Payment in N:PRINCIPAL:INTEREST format (N may be '-')")
def balance(
    principal: str,
    rate: str,
    term: int,
    method: str,
    start_date: str,
    paid: Tuple[int, ...],
    payment: Tuple[str, ...],
) -> None:
    """Reconcile the outstanding balance against the payments made."""
    terms = build_terms_from_options(principal, rate, term, method, start_date)
    try:
        rows, _ = generate_amortization_table(
            terms.principal, terms.periodic_rate, terms.term_periods, terms.method, terms.start_date
        )
        records: List[PaymentRecord] = []
        for number in paid:
            row = get_installment(rows, number)
            records.append(
                PaymentRecord(
                    installment_number=number,
                    payment_amount=row.payment_amount,
                    principal_amount=row.principal_amount,
                    interest_amount=row.interest_amount,
                )
            )
        records.extend(parse_payment_strings(payment))
        projection = calculate_updated_balance(
            terms.principal,
            terms.periodic_rate,
            terms.term_periods,
            terms.method,
            terms.start_date,
            records,
        )
    except InvalidLoanTermsError as exc:
        raise click.BadParameter(str(exc))
    print_balance(projection)


@cli.command()
@click.option("--balance", "-b", "current_balance", required=True, help="Outstanding balance")
@click.option("--rate", "-r", "rate", required=True, help="Periodic (monthly) interest rate, e.g. 0.01 or 1%")
@click.option("--remaining", "-n", "remaining", required=True, type=int, help="Installments left")
@click.option("--method", "method", type=click.Choice(["sac", "price"], case_sensitive=False), default="price", help="Amortization method")
@click.option("--amount", "-a", "amount", required=True, help="Extra payment amount")
@click.option(
    "--preference",
    "preference",
    type=click.Choice([p.value for p in EarlyPaymentPreference], case_sensitive=False),
    default=EarlyPaymentPreference.SHORTEN_TERM.value,
    help="Shorten the term or reduce the installment",
)
def simulate(
    current_balance: str,
    rate: str,
    remaining: int,
    method: str,
    amount: str,
    preference: str,
) -> None:
    """Simulate an early payment on the outstanding balance."""
    extra = parse_amount(amount)
    if extra <= 0:
        raise click.BadParameter("Early payment amount must be positive")
    outstanding = parse_amount(current_balance)
    if extra >= outstanding:
        raise click.BadParameter("Early payment must be smaller than the outstanding balance")
    try:
        result = simulate_early_payment(
            outstanding,
            parse_rate(rate),
            remaining,
            method,
            extra,
            preference,
        )
    except InvalidLoanTermsError as exc:
        raise click.BadParameter(str(exc))
    print_simulation(result)


if __name__ == "__main__":
    cli()
