"""Wallet implementations."""
from .keypair import KeypairWallet

__all__ = ["KeypairWallet"]
