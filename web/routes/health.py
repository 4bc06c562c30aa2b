"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter, Request

from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, mode, version 정보
    """
    mode = getattr(request.app.state, "mode", None)
    return HealthResponse(
        status="ok" if getattr(request.app.state, "store", None) is not None else "starting",
        mode=mode.value if mode is not None else "unknown",
        version=API_VERSION,
    )
