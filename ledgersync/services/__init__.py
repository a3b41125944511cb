from .identity import IdentitySession
from .sheets_store import SheetsStore
from .ledger_client import LedgerClient
from .token_vault import TokenVault

__all__ = ["IdentitySession", "SheetsStore", "LedgerClient", "TokenVault"]
