import logging
import os

from flask import Flask, jsonify, request

from financing_calc.engine import (
    calculate_updated_balance,
    generate_amortization_table,
    simulate_early_payment,
)
from financing_calc.errors import InvalidLoanTermsError
from financing_calc.formatter import (
    serialize_projection,
    serialize_rows,
    serialize_simulation,
    serialize_summary,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
app.config["MAX_TERM"] = int(os.environ.get("FINANCING_CALC_MAX_TERM", "600"))


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidLoanTermsError("Request body must be a JSON object")
    return body


def _require(body: dict, key: str):
    if key not in body or body[key] is None:
        raise InvalidLoanTermsError(f"Missing field: {key}")
    return body[key]


def _term(body: dict, key: str) -> int:
    """Read a term field and bound it so a request cannot ask for a huge table."""
    value = _require(body, key)
    if isinstance(value, int) and not isinstance(value, bool) and value > app.config["MAX_TERM"]:
        raise InvalidLoanTermsError(
            f"{key} must not exceed {app.config['MAX_TERM']}, got {value}"
        )
    return value


def _loan_args(body: dict) -> tuple:
    return (
        _require(body, "principal"),
        _require(body, "periodic_rate"),
        _term(body, "term_periods"),
        _require(body, "method"),
        _require(body, "start_date"),
    )


@app.errorhandler(InvalidLoanTermsError)
def invalid_terms(exc: InvalidLoanTermsError):
    logger.info("Rejected %s %s: %s", request.method, request.path, exc)
    return jsonify({"error": str(exc)}), 400


@app.get("/health")
def health():
    return jsonify({"status": "ok"})


@app.post("/api/amortization")
def amortization():
    body = _json_body()
    rows, summary = generate_amortization_table(*_loan_args(body))
    return jsonify({"rows": serialize_rows(rows), "summary": serialize_summary(summary)})


@app.post("/api/balance")
def balance():
    body = _json_body()
    payments = body.get("payments") or []
    if not isinstance(payments, list) or not all(isinstance(p, dict) for p in payments):
        raise InvalidLoanTermsError("payments must be a list of objects")
    projection = calculate_updated_balance(*_loan_args(body), payments)
    return jsonify(serialize_projection(projection))


@app.post("/api/early-payment")
def early_payment():
    body = _json_body()
    result = simulate_early_payment(
        _require(body, "current_balance"),
        _require(body, "periodic_rate"),
        _term(body, "remaining_periods"),
        _require(body, "method"),
        _require(body, "payment_amount"),
        _require(body, "preference"),
    )
    return jsonify(serialize_simulation(result))


if __name__ == "__main__":
    print("Starting financing calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
