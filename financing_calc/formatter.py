"""Output helpers for the financing calculator.

This module renders amortization tables, balance projections and early
payment simulations in a tabular text format, and converts the same values
into JSON-serialisable dictionaries for file export and the web adapter.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .data_models import (
    AmortizationRow,
    AmortizationSummary,
    BalanceProjection,
    EarlyPaymentResult,
)


def print_summary(summary: AmortizationSummary, rows: List[AmortizationRow]) -> None:
    """Print the totals of an amortization table in a human‑readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Principal financed : {summary.principal:.2f}")
    print(f"Total interest     : {summary.total_interest:.2f}")
    print(f"Total payments     : {summary.total_payments:.2f}")
    print(f"Installments       : {len(rows)}")
    if rows:
        # SAC tables start high and end low; Price tables stay flat
        print(f"First installment  : {rows[0].payment_amount:.2f}")
        print(f"Last installment   : {rows[-1].payment_amount:.2f}")
        print(f"Final due date     : {rows[-1].due_date.isoformat()}")
    print("-" * 72)


def print_schedule(rows: Iterable[AmortizationRow]) -> None:
    """Print the amortization table as a simple tab-separated table."""
    headers = [
        "No",
        "DueDate",
        "Payment",
        "Principal",
        "Interest",
        "Balance",
    ]
    print("\t".join(headers))
    for row in rows:
        print(
            "\t".join(
                [
                    str(row.installment_number),
                    row.due_date.isoformat(),
                    f"{row.payment_amount:.2f}",
                    f"{row.principal_amount:.2f}",
                    f"{row.interest_amount:.2f}",
                    f"{row.remaining_balance:.2f}",
                ]
            )
        )


def print_balance(projection: BalanceProjection) -> None:
    print("Balance")
    print("-" * 72)
    print(f"Current balance    : {projection.current_balance:.2f}")
    print(f"Paid installments  : {projection.paid_installments}")
    print(f"Remaining          : {projection.remaining_installments}")
    print(f"Total paid         : {projection.total_paid:.2f}")
    print(f"Interest paid      : {projection.total_interest_paid:.2f}")
    print(f"Paid (% of cost)   : {projection.percentage_paid:.2f}%")
    print("-" * 72)


def print_simulation(result: EarlyPaymentResult) -> None:
    """Print an early payment simulation next to the loan it starts from."""
    print("Early payment simulation")
    print("=" * 72)
    print(f"{'Metric':20s} {'Before':>15s} {'After':>15s}")
    print(f"{'principal':20s} {result.original_principal:15.2f} {result.new_principal:15.2f}")
    print(f"{'installment':20s} {result.original_payment:15.2f} {result.new_payment:15.2f}")
    print(f"{'term':20s} {result.original_term:15d} {result.new_term:15d}")
    print("=" * 72)
    print(f"Early payment      : {result.early_payment_amount:.2f}")
    print(f"Interest saved     : {result.interest_saved:.2f}")
    if result.periods_saved:
        print(f"Term reduction     : {result.periods_saved} months")


def serialize_rows(rows: Iterable[AmortizationRow]) -> List[Dict[str, Any]]:
    """Convert table rows into JSON-serialisable dictionaries."""
    serialized = []
    for row in rows:
        serialized.append(
            {
                "installment_number": row.installment_number,
                "due_date": row.due_date.isoformat(),
                "payment_amount": float(row.payment_amount),
                "principal_amount": float(row.principal_amount),
                "interest_amount": float(row.interest_amount),
                "remaining_balance": float(row.remaining_balance),
            }
        )
    return serialized


def serialize_summary(summary: AmortizationSummary) -> Dict[str, Any]:
    return {
        "total_payments": float(summary.total_payments),
        "total_interest": float(summary.total_interest),
        "total_amortization": float(summary.total_amortization),
        "principal": float(summary.principal),
    }


def serialize_projection(projection: BalanceProjection) -> Dict[str, Any]:
    return {
        "current_balance": float(projection.current_balance),
        "paid_installments": projection.paid_installments,
        "total_paid": float(projection.total_paid),
        "total_interest_paid": float(projection.total_interest_paid),
        "remaining_installments": projection.remaining_installments,
        "percentage_paid": float(projection.percentage_paid),
    }


def serialize_simulation(result: EarlyPaymentResult) -> Dict[str, Any]:
    return {
        "original_principal": float(result.original_principal),
        "early_payment_amount": float(result.early_payment_amount),
        "new_principal": float(result.new_principal),
        "interest_saved": float(result.interest_saved),
        "new_payment": float(result.new_payment),
        "new_term": result.new_term,
        "original_payment": float(result.original_payment),
        "original_term": result.original_term,
        "periods_saved": result.periods_saved,
    }
