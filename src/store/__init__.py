"""Projection storage layer.

This package persists pulses, raw records and domain entities in a
relational database and answers the resumption queries of the pipeline.
"""
