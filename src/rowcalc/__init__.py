"""rowcalc -- spreadsheet formula evaluation over rows of column values."""

__version__ = "0.3.0"
