"""Port-knocking client: TCP/UDP knock sequences, follow-up commands and saved presets."""

__version__ = "1.4.1"
__all__ = ["__version__"]