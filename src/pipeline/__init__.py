"""Observer pipeline.

This package drives fetch, correlate and store cycles over the
ledger export stream.
"""
