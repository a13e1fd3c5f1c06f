"""
Tracc: personal time tracking from the command line.

Records "period begin" and "period end" entries in a local DuckDB ledger
and reports the time spent working today.
"""
import logging

# Applications using this package should configure their own logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

VERSION = "0.1.0"
