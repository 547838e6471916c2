"""Campus rewards service: assessment engine and points ledger."""

__version__ = "0.1.0"
