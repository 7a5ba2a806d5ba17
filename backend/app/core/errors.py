# app/core/errors.py
from __future__ import annotations


class CommissionError(Exception):
    """Base class for commission-engine failures."""


class LeadNotFoundError(CommissionError):
    pass


class SaleNotFoundError(CommissionError):
    pass


class HQBootstrapError(CommissionError):
    """The HQ profile could neither be found nor created."""
