"""
가계부 원장 정합성 엔진

계좌 잔액, 카드 청구서 합계, 반복 거래 실체화, 투자 포지션을 저장소의
원자적 증감 / 원자적 트랜잭션 두 가지 기본 연산만으로 일관되게 유지한다.

사용 예시:
```python
from adapters.db import DocumentStore, SQLiteAdapter, init_schema
from core.session import Session
from finance.ledger import LedgerService, TransactionDraft

adapter = SQLiteAdapter(db_path)
await adapter.connect()
await init_schema(adapter)

ledger = LedgerService(DocumentStore(adapter))
await ledger.apply_transaction(Session("uid-1"), TransactionDraft(...))
```
"""
