"""JSON ledger file used by the command line tool."""

import logging
from pathlib import Path

from .models import LedgerFile, Settlement

logger = logging.getLogger(__name__)


class LedgerStore:
    """Reads the ledger file and appends settlements to it."""

    def __init__(self, path: Path):
        """Initialize the store. A missing file reads as an empty ledger."""
        self.path = path

    def load(self) -> LedgerFile:
        """Load the ledger from disk."""
        if not self.path.exists():
            logger.debug(f"No ledger at {self.path}, starting empty")
            return LedgerFile()
        return LedgerFile.model_validate_json(self.path.read_text(encoding="utf-8"))

    def save(self, ledger: LedgerFile) -> None:
        """Write the whole ledger back to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(ledger.model_dump_json(indent=2), encoding="utf-8")

    def append_settlement(self, settlement: Settlement) -> LedgerFile:
        """
        Append one settlement to the ledger file.

        Existing settlements are never rewritten or removed.

        Returns:
            The updated ledger
        """
        ledger = self.load()
        ledger.settlements.append(settlement)
        self.save(ledger)
        logger.info(f"Saved settlement {settlement.id} to {self.path}")
        return ledger
