"""
Fee/Fine Kernel

Value types, domain records, lookup ports, typed exceptions, structured
logging and the SQLAlchemy persistence adapter for patron fee/fine
accounts and their append-only action ledger.
"""

__version__ = "0.1.0"
