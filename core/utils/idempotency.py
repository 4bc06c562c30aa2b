"""
Idempotency 유틸리티

결정적 문서 ID 생성 및 파싱 기능 제공.
같은 논리 키는 항상 같은 ID를 만들어 create-if-absent로 중복 생성을 막는다.

규칙:
- 청구서: inv_{owner_id}_{card_id}_{YYYYMM}
- 예산: {owner_id}_{category}
"""

INVOICE_ID_PREFIX: str = "inv"


def make_invoice_id(owner_id: str, card_id: str, year: int, month: int) -> str:
    """결정적 청구서 ID 생성

    Args:
        owner_id: 사용자 ID
        card_id: 카드 ID
        year: 청구 연도
        month: 청구 월 (1~12)

    Returns:
        inv_{owner_id}_{card_id}_{YYYYMM} 형식

    Example:
        >>> make_invoice_id("u1", "c1", 2026, 4)
        'inv_u1_c1_202604'
    """
    if not owner_id or not card_id:
        raise ValueError("owner_id와 card_id는 비어 있을 수 없습니다")
    if not 1 <= month <= 12:
        raise ValueError(f"잘못된 월입니다: {month}")

    return f"{INVOICE_ID_PREFIX}_{owner_id}_{card_id}_{year:04d}{month:02d}"


def parse_invoice_period(invoice_id: str) -> tuple[int, int] | None:
    """청구서 ID에서 (year, month) 추출

    Example:
        >>> parse_invoice_period("inv_u1_c1_202604")
        (2026, 4)
        >>> parse_invoice_period("other")
        None
    """
    if not invoice_id or not invoice_id.startswith(f"{INVOICE_ID_PREFIX}_"):
        return None

    suffix = invoice_id.rsplit("_", 1)[-1]
    if len(suffix) != 6 or not suffix.isdigit():
        return None

    year, month = int(suffix[:4]), int(suffix[4:])
    if not 1 <= month <= 12:
        return None
    return year, month


def make_budget_id(owner_id: str, category: str) -> str:
    """결정적 예산 ID 생성 (카테고리당 1개)

    Example:
        >>> make_budget_id("u1", "Lazer")
        'u1_Lazer'
    """
    if not owner_id or not category:
        raise ValueError("owner_id와 category는 비어 있을 수 없습니다")

    return f"{owner_id}_{category}"
