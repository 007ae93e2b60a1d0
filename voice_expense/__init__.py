"""
Voice Expense - Source Package

Turns a short spoken or typed sentence into a structured expense record
(amount, currency, category, merchant, confidence).

DESIGN PRINCIPLES:
1. Transcript in → ParseResult out (no I/O inside a parse)
2. Deterministic tie-breaks for every ambiguity
3. Failures are returned as typed values, never thrown at the caller
4. Every parse step is auditable
5. The currency catalog is loaded once and passed in explicitly
"""

__version__ = "1.0.0"
__author__ = "Voice Expense Team"
