"""PMD quality gate: run PMD, filter its violations, fail on what remains."""

__version__ = "0.1.0"
