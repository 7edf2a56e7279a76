"""Lending program: address derivation, amounts and instruction builders."""
from .addresses import AddressDeriver, associated_token_address, derive
from .amounts import to_base_units, to_human_units
from .assets import AssetRegistry
from .instructions import OperationBuilder

__all__ = [
    "AddressDeriver",
    "AssetRegistry",
    "OperationBuilder",
    "associated_token_address",
    "derive",
    "to_base_units",
    "to_human_units",
]
