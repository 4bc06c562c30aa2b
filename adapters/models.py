"""
어댑터 공통 데이터 모델

문서 저장소의 조회 결과와 조회 조건을 표준화한 모델.
"""

from dataclasses import dataclass, field
from typing import Any


# 지원하는 필터 연산자
FILTER_OPS: frozenset[str] = frozenset({"==", "!=", "<", "<=", ">", ">=", "in"})


@dataclass(frozen=True)
class StoredDocument:
    """저장된 문서

    Attributes:
        collection: 컬렉션 이름
        doc_id: 문서 ID
        parent_id: 상위 문서 ID (최상위 컬렉션이면 None)
        data: 문서 본문 (JSON 호환 dict)
        version: 쓰기마다 1씩 증가하는 버전 (충돌 감지용)
        seq: 삽입 순번 (정렬 보조 키)
    """

    collection: str
    doc_id: str
    parent_id: str | None
    data: dict[str, Any]
    version: int
    seq: int

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class QueryFilter:
    """최상위 필드 필터

    Attributes:
        field: 필드 이름
        op: 연산자 (==, !=, <, <=, >, >=, in)
        value: 비교 값 (in 이면 list/tuple)
    """

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPS:
            raise ValueError(f"지원하지 않는 연산자: {self.op}")
        if not self.field.replace("_", "").isalnum():
            raise ValueError(f"잘못된 필드 이름: {self.field}")


@dataclass(frozen=True)
class OrderBy:
    """정렬 조건 (같은 값은 삽입 순번으로 정렬)"""

    field: str
    descending: bool = False

    def __post_init__(self) -> None:
        if not self.field.replace("_", "").isalnum():
            raise ValueError(f"잘못된 필드 이름: {self.field}")


@dataclass
class WriteOp:
    """트랜잭션 버퍼의 쓰기 연산

    kind: create / set / update / increment / delete
    force: delete 에서 소유자 검사를 건너뜀 (연결 문서 정리용)
    """

    kind: str
    collection: str
    doc_id: str
    parent_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    force: bool = False


def where(field_name: str, op: str, value: Any) -> QueryFilter:
    """QueryFilter 축약 생성자"""
    return QueryFilter(field_name, op, value)
