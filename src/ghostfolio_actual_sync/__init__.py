"""Month-end reconciliation of Ghostfolio portfolio values into Actual Budget."""

__version__ = "0.1.0"
