"""hrdesk - employee management with attendance, leave and salary computation."""

__version__ = "0.1.0"
