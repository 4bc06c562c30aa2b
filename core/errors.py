"""
원장 오류 정의

모든 원장 연산은 성공하거나 아래 타입의 예외를 던진다.
어떤 연산도 자동 재시도하지 않으며 재시도 정책은 호출자 책임.
"""


class LedgerError(Exception):
    """원장 연산 실패 기본 예외

    Args:
        message: 내부 로그용 메시지
        user_message: 사용자에게 노출할 메시지 (None이면 message 사용)
    """

    retryable: bool = False

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message


class ValidationError(LedgerError):
    """입력 검증 실패 (쓰기 전에 거부됨)

    금액 ≤ 0, 동일 계좌 이체, 필수 카테고리/계좌 누락, 분할 합계 불일치,
    보유 수량 초과 매도, 청구서 잔액 초과 선결제 등.
    """

    pass


class NotFoundError(LedgerError):
    """문서 없음 (다른 사용자 문서는 StoreError(PERMISSION_DENIED))"""

    pass


class ConsistencyError(LedgerError):
    """트랜잭션 충돌 감지

    트랜잭션 내부에서 읽은 문서가 커밋 전에 변경됨. 아무것도 기록되지 않았으므로
    호출자가 재시도할 수 있음.
    """

    retryable = True


class StoreError(LedgerError):
    """저장소 오류 (권한 거부, 인덱스 누락, 연결 불가)

    Args:
        code: 오류 코드 (PERMISSION_DENIED 등)
        message: 내부 메시지
        user_message: 사용자 메시지
    """

    PERMISSION_DENIED = "permission_denied"
    FAILED_PRECONDITION = "failed_precondition"
    UNAVAILABLE = "unavailable"

    _USER_MESSAGES = {
        PERMISSION_DENIED: "이 데이터에 접근할 권한이 없습니다",
        FAILED_PRECONDITION: "저장소 인덱스가 준비되지 않았습니다",
        UNAVAILABLE: "저장소에 연결할 수 없습니다. 잠시 후 다시 시도하세요",
    }

    def __init__(self, code: str, message: str, user_message: str | None = None):
        super().__init__(message, user_message or self._USER_MESSAGES.get(code))
        self.code = code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.code == self.UNAVAILABLE
