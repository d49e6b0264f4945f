"""VitaBalance API - personalised nutrition and training plans behind a one-time payment."""

__version__ = "1.0.0"
