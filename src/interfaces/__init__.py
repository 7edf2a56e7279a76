"""Protocol interfaces for the lending client."""
from .chain import ChainClient
from .wallet import Wallet

__all__ = ["ChainClient", "Wallet"]
