"""carrier_ledger: carrier record keeping with spreadsheet bulk import."""

__version__ = "0.1.0"
