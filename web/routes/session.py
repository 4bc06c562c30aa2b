"""
세션 라우트

POST /api/session - 로그인 직후 호출, 사용자 준비 작업 실행
"""

from fastapi import APIRouter, Depends, Request

from core.session import Session
from web.dependencies import get_session

router = APIRouter(prefix="/api/session", tags=["Session"])


@router.post("")
async def start_session(request: Request, session: Session = Depends(get_session)):
    """신규 사용자 초기화, 청구서 마감, 반복 거래 실체화"""
    result = await request.app.state.bootstrapper.prepare(session)
    return {"user_id": session.user_id, **result}
