"""
core/session.py 테스트

Session 생성과 AuthStateStream 통지 순서
"""

import pytest

from core.session import AuthStateStream, AuthUser, Session


class TestSession:
    def test_for_user(self) -> None:
        assert Session.for_user(AuthUser(uid="abc")).user_id == "abc"

    def test_empty_user_id(self) -> None:
        with pytest.raises(ValueError):
            Session(user_id="")


class TestAuthStateStream:
    """인증 상태 스트림"""

    @pytest.mark.asyncio
    async def test_publish_in_order(self) -> None:
        stream = AuthStateStream()
        received: list[str] = []

        async def first(user: AuthUser | None) -> None:
            received.append(f"first:{user.uid if user else None}")

        async def second(user: AuthUser | None) -> None:
            received.append(f"second:{user.uid if user else None}")

        stream.subscribe(first)
        stream.subscribe(second)
        await stream.publish(AuthUser(uid="u1"))
        await stream.publish(None)

        assert received == ["first:u1", "second:u1", "first:None", "second:None"]
        assert stream.current_user is None

    @pytest.mark.asyncio
    async def test_subscribe_after_login_notifies_once(self) -> None:
        """로그인 후 구독하면 현재 사용자를 한 번 받는다"""
        stream = AuthStateStream()
        await stream.publish(AuthUser(uid="u1"))

        received: list[AuthUser | None] = []

        async def listener(user: AuthUser | None) -> None:
            received.append(user)

        stream.subscribe(listener)
        await stream.drain()

        assert received == [AuthUser(uid="u1")]

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        stream = AuthStateStream()
        received: list[AuthUser | None] = []

        async def listener(user: AuthUser | None) -> None:
            received.append(user)

        unsubscribe = stream.subscribe(listener)
        unsubscribe()
        await stream.publish(AuthUser(uid="u1"))

        assert received == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self) -> None:
        stream = AuthStateStream()
        received: list[str] = []

        async def broken(user: AuthUser | None) -> None:
            raise RuntimeError("boom")

        async def healthy(user: AuthUser | None) -> None:
            received.append(user.uid)

        stream.subscribe(broken)
        stream.subscribe(healthy)
        await stream.publish(AuthUser(uid="u1"))

        assert received == ["u1"]
