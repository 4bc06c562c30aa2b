"""
Session Bootstrap

인증 상태 스트림을 구독하여 로그인 시 사용자 준비 작업을 실행한다.
1. 신규 사용자 초기화 (사용자 문서, 기본 카테고리, 기본 지갑 계좌)
2. 납부일이 지난 청구서 마감
3. 이번 달 실행일이 지난 반복 거래 실체화
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from adapters.interfaces import IDocumentStore
from core.constants import Collections, Defaults
from core.domain.models import Account, UserProfile
from core.errors import LedgerError
from core.session import AuthStateStream, AuthUser, Session
from core.types import AccountType
from core.utils.timezone import BRT, local_date, now_utc
from finance.base import build_entity
from finance.budgets.categories import create_default_categories
from finance.invoices.service import InvoiceService
from finance.recurring.materializer import RecurringService

logger = logging.getLogger(__name__)


class SessionBootstrapper:
    """로그인 시 사용자 준비

    사용 예시:
    ```python
    bootstrapper = SessionBootstrapper(store)
    bootstrapper.attach(auth_stream)
    await auth_stream.publish(AuthUser(uid="abc"))
    ```

    Args:
        store: 문서 저장소
        clock: 현재 시각 함수 (테스트 주입용)
        tz: 달력 판단 타임존 (청구서 마감일, 반복 거래 실행일)
    """

    def __init__(
        self,
        store: IDocumentStore,
        clock: Callable[[], datetime] = now_utc,
        tz: timezone = BRT,
    ):
        self._root_store = store
        self.clock = clock
        self.tz = tz
        self.invoices = InvoiceService(store)
        self.recurring = RecurringService(store, tz=tz)
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, stream: AuthStateStream) -> None:
        """인증 스트림 구독"""
        self.detach()
        self._unsubscribe = stream.subscribe(self.on_auth_changed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def on_auth_changed(self, user: AuthUser | None) -> None:
        if user is None:
            logger.info("로그아웃")
            return
        await self.prepare(Session.for_user(user), user)

    async def prepare(self, session: Session, user: AuthUser | None = None) -> dict[str, int]:
        """사용자 준비 작업 실행

        단계별 실패는 로그만 남기고 다음 단계를 계속한다.

        Returns:
            {"initialized": 0|1, "closed_invoices": n, "materialized": n}
        """
        now = self.clock()
        result = {"initialized": 0, "closed_invoices": 0, "materialized": 0}

        try:
            result["initialized"] = int(await self.initialize_user(session, user))
        except LedgerError as e:
            logger.error(f"사용자 초기화 실패: {session.user_id}: {e}")

        try:
            result["closed_invoices"] = await self.invoices.close_overdue_invoices(
                session, local_date(now, self.tz)
            )
        except LedgerError as e:
            logger.error(f"청구서 마감 처리 실패: {session.user_id}: {e}")

        try:
            result["materialized"] = await self.recurring.process_due(session, now)
        except LedgerError as e:
            logger.error(f"반복 거래 처리 실패: {session.user_id}: {e}")

        logger.info(f"세션 준비 완료: {session.user_id} {result}")
        return result

    async def initialize_user(self, session: Session, user: AuthUser | None = None) -> bool:
        """신규 사용자 초기화 (이미 초기화된 사용자는 건너뜀)

        Returns:
            True: 새로 초기화함
        """
        store = self._root_store.for_owner(session.user_id)
        created_at = now_utc()

        async with store.transaction() as tx:
            if await tx.get(Collections.USERS, session.user_id) is not None:
                return False

            profile = build_entity(
                UserProfile,
                owner_id=session.user_id,
                email=user.email if user else None,
                initialized_at=created_at,
                created_at=created_at,
            )
            tx.create(Collections.USERS, profile.to_document(), doc_id=session.user_id)
            create_default_categories(tx, session)

            if not await tx.query(Collections.ACCOUNTS, limit=1):
                wallet = build_entity(
                    Account,
                    owner_id=session.user_id,
                    name=Defaults.DEFAULT_ACCOUNT_NAME,
                    type=AccountType.WALLET,
                    created_at=created_at,
                )
                tx.create(Collections.ACCOUNTS, wallet.to_document())

        logger.info(f"신규 사용자 초기화: {session.user_id}")
        return True
