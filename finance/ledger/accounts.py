"""
원장 코어 - 계좌

계좌 잔액은 거래 경로(apply_balance_delta)로만 바뀐다.
이 모듈은 잔액을 직접 건드리지 않는 계좌 관리 연산만 제공한다.
"""

import logging
from decimal import Decimal

from adapters.interfaces import IStoreTransaction
from adapters.models import OrderBy, where
from core.constants import Collections
from core.domain.models import Account
from core.errors import ValidationError
from core.session import Session
from core.types import AccountStatus, AccountType
from core.utils.timezone import now_utc
from finance.base import StoreBackedService, build_entity, fetch_entity

logger = logging.getLogger(__name__)


class AccountService(StoreBackedService):
    """계좌 관리 서비스"""

    async def create_account(
        self,
        session: Session,
        name: str,
        account_type: AccountType = AccountType.CHECKING,
        initial_balance: Decimal = Decimal("0"),
    ) -> Account:
        """계좌 생성 (current_balance = initial_balance)

        투자 계좌는 포트폴리오 생성 시에만 만들어진다.
        """
        if account_type == AccountType.INVESTMENT:
            raise ValidationError(
                "투자 계좌는 포트폴리오와 함께 생성됩니다",
                user_message="투자 계좌는 포트폴리오에서 만드세요",
            )

        account = build_entity(
            Account,
            owner_id=session.user_id,
            name=name.strip(),
            type=account_type,
            initial_balance=initial_balance,
            current_balance=initial_balance,
            created_at=now_utc(),
        )
        account.id = await self._store(session).create(Collections.ACCOUNTS, account.to_document())

        logger.info(f"계좌 생성: {account.name} ({account.type.value}) 초기 잔액 {initial_balance}")
        return account

    async def get_account(self, session: Session, account_id: str) -> Account:
        return await fetch_entity(
            self._store(session), Collections.ACCOUNTS, Account, account_id, "계좌"
        )

    async def list_accounts(
        self,
        session: Session,
        include_investment: bool = False,
        include_archived: bool = False,
    ) -> list[Account]:
        """계좌 목록 (이름순)

        Args:
            include_investment: 포트폴리오 연결 투자 계좌 포함 여부
            include_archived: 보관 계좌 포함 여부
        """
        filters = []
        if not include_archived:
            filters.append(where("status", "==", AccountStatus.ACTIVE))
        if not include_investment:
            filters.append(where("type", "!=", AccountType.INVESTMENT))

        docs = await self._store(session).query(
            Collections.ACCOUNTS, filters, order_by=OrderBy("name")
        )
        return [Account.from_document(d.doc_id, d.data) for d in docs]

    async def update_account(
        self,
        session: Session,
        account_id: str,
        name: str | None = None,
        account_type: AccountType | None = None,
    ) -> Account:
        """이름/유형 변경 (잔액 필드는 변경 불가)"""
        fields: dict[str, object] = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("계좌 이름이 비어 있습니다")
            fields["name"] = name.strip()

        store = self._store(session)
        async with store.transaction() as tx:
            account = await fetch_entity(tx, Collections.ACCOUNTS, Account, account_id, "계좌")
            if account_type is not None and account_type != account.type:
                if AccountType.INVESTMENT in (account_type, account.type):
                    raise ValidationError("투자 계좌 유형은 변경할 수 없습니다")
                fields["type"] = account_type
            if fields:
                tx.update(Collections.ACCOUNTS, account_id, fields)

        return account.model_copy(update=fields)

    async def archive_account(self, session: Session, account_id: str) -> None:
        """계좌 보관 (기본 삭제 방식)"""
        store = self._store(session)
        async with store.transaction() as tx:
            await fetch_entity(tx, Collections.ACCOUNTS, Account, account_id, "계좌")
            tx.update(Collections.ACCOUNTS, account_id, {"status": AccountStatus.ARCHIVED})

        logger.info(f"계좌 보관: {account_id}")

    async def restore_account(self, session: Session, account_id: str) -> None:
        """보관 계좌 복원"""
        store = self._store(session)
        async with store.transaction() as tx:
            await fetch_entity(tx, Collections.ACCOUNTS, Account, account_id, "계좌")
            tx.update(Collections.ACCOUNTS, account_id, {"status": AccountStatus.ACTIVE})

    async def delete_account(self, session: Session, account_id: str, confirm: bool = False) -> None:
        """계좌 영구 삭제

        잔액이 0이 아니면 confirm=True 가 필요하다.
        거래가 하나라도 이 계좌를 참조하면 삭제하지 않는다 (보관만 가능).

        Raises:
            ValidationError: 확인 누락, 포트폴리오 연결 계좌, 거래 참조 계좌
        """
        store = self._store(session)
        async with store.transaction() as tx:
            account = await fetch_entity(tx, Collections.ACCOUNTS, Account, account_id, "계좌")
            if account.portfolio_id:
                raise ValidationError(
                    f"포트폴리오 연결 계좌: {account_id}",
                    user_message="포트폴리오를 먼저 삭제하세요",
                )
            if await self._is_referenced(tx, account_id):
                raise ValidationError(
                    f"거래가 참조하는 계좌: {account_id}",
                    user_message="거래 내역이 있는 계좌는 삭제할 수 없습니다. 보관하세요",
                )
            if account.current_balance != 0 and not confirm:
                raise ValidationError(
                    f"잔액이 남은 계좌 삭제에는 확인이 필요합니다: {account.current_balance}",
                    user_message="잔액이 남아 있습니다. 보관하거나 삭제를 확인하세요",
                )
            tx.delete(Collections.ACCOUNTS, account_id)

        logger.warning(f"계좌 삭제: {account_id} (잔액 {account.current_balance})")

    @staticmethod
    async def _is_referenced(tx: IStoreTransaction, account_id: str) -> bool:
        for field_name in ("account_id", "from_account_id", "to_account_id"):
            if await tx.query(Collections.TRANSACTIONS, [where(field_name, "==", account_id)], limit=1):
                return True
        return False
