"""
세션 / 인증 상태

모든 원장 연산은 Session을 인자로 받는다. 모듈 전역 "현재 사용자"는 두지 않는다.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    """인증 제공자가 전달하는 사용자 핸들"""

    uid: str
    email: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class Session:
    """원장 연산 컨텍스트

    Attributes:
        user_id: 모든 문서의 owner_id 로 쓰이는 사용자 키
    """

    user_id: str

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id는 비어 있을 수 없습니다")

    @classmethod
    def for_user(cls, user: AuthUser) -> "Session":
        """AuthUser로부터 Session 생성"""
        return cls(user_id=user.uid)


AuthListener = Callable[[AuthUser | None], Awaitable[None]]


class AuthStateStream:
    """인증 상태 변경 push 스트림

    구독자는 로그인 시 AuthUser, 로그아웃 시 None을 받는다.
    구독 직후 현재 상태를 한 번 전달한다.

    사용 예시:
    ```python
    stream = AuthStateStream()
    unsubscribe = stream.subscribe(on_auth_changed)
    await stream.publish(AuthUser(uid="abc"))
    unsubscribe()
    ```
    """

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []
        self._current: AuthUser | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def current_user(self) -> AuthUser | None:
        """마지막으로 전달된 사용자"""
        return self._current

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """리스너 등록

        Returns:
            구독 해제 함수
        """
        self._listeners.append(listener)

        if self._current is not None:
            # 이미 로그인 상태면 즉시 한 번 통지
            task = asyncio.get_running_loop().create_task(listener(self._current))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, user: AuthUser | None) -> None:
        """상태 변경 전달 (리스너 순서대로 await)

        한 리스너의 실패는 로그만 남기고 다음 리스너로 진행.
        """
        self._current = user
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception as e:
                logger.error(f"인증 상태 리스너 실패: {e}", exc_info=True)

    async def drain(self) -> None:
        """구독 시점 통지가 모두 끝날 때까지 대기"""
        if self._pending:
            await asyncio.gather(*self._pending)
