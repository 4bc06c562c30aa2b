"""
Ledger Reconciler

사용자의 모든 집계 값을 원본 기록과 비교하고, 계좌 잔액 drift 를 복구한다.
연결 거래 조회가 거부되어 잔액을 되돌리지 못한 투자 이동 삭제 후의 복구 경로다.
"""

import logging
from collections import defaultdict

from adapters.interfaces import IDocumentStore
from core.constants import Collections
from core.domain.models import Account, Asset, Invoice, InvoiceItem, Movement, Transaction
from core.session import Session
from finance.base import StoreBackedService
from finance.reconciler.drift import DriftDetector, DriftInfo, expected_balances

logger = logging.getLogger(__name__)


async def _load(store, collection: str, model):
    docs = await store.query(collection)
    return [model.from_document(d.doc_id, d.data) for d in docs]


class Reconciler(StoreBackedService):
    """정합성 점검 / 복구

    Args:
        store: 문서 저장소
    """

    def __init__(self, store: IDocumentStore):
        super().__init__(store)
        self.drift_detector = DriftDetector()

    async def check(self, session: Session) -> list[DriftInfo]:
        """전체 drift 목록 (계좌 → 청구서 → 자산)"""
        store = self._store(session)

        accounts = await _load(store, Collections.ACCOUNTS, Account)
        transactions = await _load(store, Collections.TRANSACTIONS, Transaction)
        drifts = self.drift_detector.detect_account_drift(accounts, transactions)

        invoices = await _load(store, Collections.INVOICES, Invoice)
        items = await _load(store, Collections.INVOICE_ITEMS, InvoiceItem)
        drifts += self.drift_detector.detect_invoice_drift(invoices, items)

        assets = await _load(store, Collections.ASSETS, Asset)
        movements: dict[str, list[Movement]] = defaultdict(list)
        for m in await _load(store, Collections.MOVEMENTS, Movement):
            movements[m.asset_id].append(m)
        for asset in assets:
            drift = self.drift_detector.detect_asset_drift(asset, movements[asset.id])
            if drift:
                drifts.append(drift)

        for drift in drifts:
            logger.warning(
                f"Drift 감지: {drift.description}",
                extra={"drift_kind": drift.drift_kind, "entity_id": drift.entity_id},
            )
        logger.info(f"정합성 점검 완료: owner={session.user_id}, drift {len(drifts)}건")
        return drifts

    async def repair_account_balances(self, session: Session) -> int:
        """계좌 잔액을 거래 합계로 재작성

        계좌와 거래를 같은 트랜잭션에서 읽으므로, 점검 중 잔액이 바뀌면
        ConsistencyError 로 중단된다 (다시 실행하면 된다).

        Returns:
            복구한 계좌 수
        """
        store = self._store(session)
        repaired = 0
        async with store.transaction() as tx:
            account_docs = await tx.query(Collections.ACCOUNTS)
            tx_docs = await tx.query(Collections.TRANSACTIONS)
            accounts = [Account.from_document(d.doc_id, d.data) for d in account_docs]
            transactions = [Transaction.from_document(d.doc_id, d.data) for d in tx_docs]

            expected = expected_balances(accounts, transactions)
            for account in accounts:
                want = expected[account.id]
                if account.current_balance == want:
                    continue
                tx.update(Collections.ACCOUNTS, account.id, {"current_balance": want})
                repaired += 1
                logger.warning(
                    f"계좌 잔액 복구: {account.name} {account.current_balance} → {want}",
                    extra={"account_id": account.id, "owner_id": session.user_id},
                )

        logger.info(f"계좌 잔액 복구 완료: {repaired}건 (owner={session.user_id})")
        return repaired
