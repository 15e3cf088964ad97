"""Record correlation.

This package matches raw records into chains and builds domain
entities once every record of a business operation is observed.
"""
