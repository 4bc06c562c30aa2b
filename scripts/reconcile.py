"""
원장 정합성 점검

계좌 잔액, 청구서 합계, 자산 포지션을 원본 기록과 비교한다.
--repair 를 주면 계좌 잔액 drift 를 거래 합계로 복구한다.

사용법:
    python -m scripts.reconcile --owner <uid>
    python -m scripts.reconcile --owner <uid> --repair
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from adapters.db.document_store import DocumentStore
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.logging import setup_logging
from core.session import Session
from finance.reconciler.reconciler import Reconciler

logger = logging.getLogger(__name__)


async def main(owner: str, repair: bool, db_path: Path | None = None) -> int:
    """점검 실행

    Args:
        owner: 사용자 ID
        repair: 계좌 잔액 복구 여부
        db_path: DB 경로 (None이면 설정의 모드별 경로)

    Returns:
        남은 drift 수 (종료 코드로 사용)
    """
    db_path = db_path or get_settings().db_path
    session = Session(user_id=owner)
    logger.info(f"정합성 점검 시작: owner={owner}, db={db_path}")

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        reconciler = Reconciler(DocumentStore(db))

        drifts = await reconciler.check(session)
        if repair and any(d.drift_kind == "account" for d in drifts):
            await reconciler.repair_account_balances(session)
            drifts = await reconciler.check(session)

    if drifts:
        logger.warning(f"정합성 점검 완료: drift {len(drifts)}건 남음")
    else:
        logger.info("정합성 점검 완료: 이상 없음 ✓")
    return len(drifts)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="원장 정합성 점검")
    parser.add_argument("--owner", required=True, help="점검할 사용자 ID")
    parser.add_argument(
        "--repair",
        action="store_true",
        help="계좌 잔액 drift 를 거래 합계로 복구",
    )
    parser.add_argument("--db", type=Path, default=None, help="DB 경로 (기본: 설정의 모드별 경로)")
    args = parser.parse_args()

    setup_logging("jobs")
    remaining = asyncio.run(main(args.owner, args.repair, args.db))
    sys.exit(1 if remaining else 0)
