"""creditgate — API-key issuance with monthly credit metering."""

__version__ = "0.1.0"
