"""Client for the Solana collateralized lending program."""
