"""Exceptions raised by the financing calculator."""


class InvalidLoanTermsError(ValueError):
    """Raised when loan terms cannot produce a schedule.

    Covers a non-positive principal or term, a periodic rate outside
    ``[0, 1)``, an unknown amortization method and numeric inputs that cannot
    be parsed. Subclassing ``ValueError`` keeps callers that already catch
    ``ValueError`` working.
    """
