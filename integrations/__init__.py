"""API integration clients."""
from integrations.rental_backend_client import RentalBackendClient

__all__ = ["RentalBackendClient"]
