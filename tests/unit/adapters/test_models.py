"""
어댑터 공통 모델 테스트

StoredDocument, QueryFilter, OrderBy 모델 테스트.
"""

import pytest

from adapters.models import OrderBy, QueryFilter, StoredDocument, where


class TestStoredDocument:
    """StoredDocument 모델 테스트"""

    def test_get(self) -> None:
        doc = StoredDocument(
            collection="accounts",
            doc_id="a1",
            parent_id=None,
            data={"name": "Nubank"},
            version=1,
            seq=1,
        )

        assert doc.get("name") == "Nubank"
        assert doc.get("missing", "x") == "x"

    def test_frozen(self) -> None:
        doc = StoredDocument("accounts", "a1", None, {}, 1, 1)

        with pytest.raises(AttributeError):
            doc.version = 2  # type: ignore


class TestQueryFilter:
    """QueryFilter 모델 테스트"""

    def test_where(self) -> None:
        f = where("status", "==", "open")

        assert f == QueryFilter("status", "==", "open")

    def test_unsupported_operator(self) -> None:
        with pytest.raises(ValueError, match="지원하지 않는 연산자"):
            QueryFilter("status", "like", "o%")

    def test_field_name_injection(self) -> None:
        """필드 이름은 JSON 경로에 들어가므로 영숫자/밑줄만 허용"""
        with pytest.raises(ValueError, match="잘못된 필드 이름"):
            QueryFilter("status') OR 1=1 --", "==", "x")


class TestOrderBy:
    def test_default_ascending(self) -> None:
        assert OrderBy("date").descending is False

    def test_bad_field(self) -> None:
        with pytest.raises(ValueError):
            OrderBy("date desc")
