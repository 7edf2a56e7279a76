"""Service modules"""
from .balance_reader import BalanceReader
from .lending_client import LendingClient
from .submitter import TransactionSubmitter

__all__ = ["BalanceReader", "LendingClient", "TransactionSubmitter"]
