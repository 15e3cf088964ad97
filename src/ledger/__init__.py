"""Ledger export access.

This package models raw ledger records, decodes contract payloads,
and pulls pulses and record batches from the export stream.
"""
