"""
Property back office: mortgage amortization, recurring cash flows and
portfolio summaries.
"""

__version__ = "0.1.0"
