#!/usr/bin/env python3
"""
Solana Lending Client
Entry point: python -m src.main <command>
"""
from .cli import main

if __name__ == "__main__":
    main()
