"""Character ledger and dice-pool engine for Scum and Villainy games."""
