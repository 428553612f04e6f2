"""External service clients."""
from services.divination_client import DivinationClient, DivinationAPIError
from services.dkg_memory import DKGMemoryService, DKGSettings

__all__ = ['DivinationClient', 'DivinationAPIError', 'DKGMemoryService', 'DKGSettings']
