"""TableSmith - CSV import, schema reconciliation and column type inference."""

__version__ = "0.1.0"
