"""Receipt field extraction evaluation."""

__version__ = "1.0.0"
