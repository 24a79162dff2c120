from __future__ import annotations

import logging
from typing import Iterable, Optional

from instabill.domain.models import Transaction

log = logging.getLogger("instabill.sales")


class TransactionLedger:
    """Append-only history of finalized sales, in insertion order."""

    def __init__(self, repo=None, transactions: Iterable[Transaction] = ()):
        self.repo = repo
        self._transactions: list[Transaction] = list(transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def append(self, transaction: Transaction) -> Transaction:
        self._transactions.append(transaction)
        if self.repo is not None:
            self.repo.save_transactions(self._transactions)
        log.info(
            "transaction_recorded id=%s total=%.2f method=%s customer=%s items=%s",
            transaction.id,
            transaction.total_amount,
            transaction.payment_method.value,
            transaction.customer_id,
            len(transaction.items),
        )
        return transaction

    def all(self) -> list[Transaction]:
        return list(self._transactions)

    def query(self, customer_id: Optional[str]) -> list[Transaction]:
        """Transactions for one customer, oldest first."""
        if not customer_id:
            return []
        return [t for t in self._transactions if t.customer_id == customer_id]

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == transaction_id), None)

    def clear(self) -> None:
        count = len(self._transactions)
        self._transactions = []
        if self.repo is not None:
            self.repo.save_transactions(self._transactions)
        log.warning("ledger_cleared removed=%s", count)
