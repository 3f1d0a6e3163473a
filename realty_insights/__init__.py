"""Voice-driven analytics assistant for a real-estate CRM."""

__version__ = "0.1.0"
