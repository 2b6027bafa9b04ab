"""Database access layer (DAL) for Scum Bot.

This sub-package encapsulates low-level DB interactions so that the ledger
and the command engine remain storage-agnostic.
"""
