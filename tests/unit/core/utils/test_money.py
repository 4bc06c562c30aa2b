"""
core/utils/money.py 테스트
"""

from decimal import Decimal

import pytest

from core.utils.money import quantize_money, split_installments, to_decimal


class TestToDecimal:
    def test_string(self) -> None:
        assert to_decimal("10.50") == Decimal("10.50")

    def test_int(self) -> None:
        assert to_decimal(3) == Decimal("3")

    def test_decimal_passthrough(self) -> None:
        value = Decimal("1.1")
        assert to_decimal(value) is value

    def test_float_rejected(self) -> None:
        """float 금액 거부"""
        with pytest.raises(TypeError):
            to_decimal(1.1)  # type: ignore[arg-type]


class TestQuantizeMoney:
    def test_round_half_up(self) -> None:
        assert quantize_money(Decimal("1.005")) == Decimal("1.01")
        assert quantize_money(Decimal("1.004")) == Decimal("1.00")


class TestSplitInstallments:
    """할부 분할 테스트"""

    def test_even_split(self) -> None:
        assert split_installments(Decimal("300"), 3) == [Decimal("100.00")] * 3

    def test_remainder_on_last(self) -> None:
        """잔여분은 마지막 회차에"""
        parts = split_installments(Decimal("100"), 3)

        assert parts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]

    @pytest.mark.parametrize(
        "total,count",
        [("100", 3), ("0.05", 4), ("999.99", 12), ("1234.56", 7)],
    )
    def test_sum_is_exact(self, total: str, count: int) -> None:
        """회차 합 == 전체 금액"""
        parts = split_installments(Decimal(total), count)

        assert len(parts) == count
        assert sum(parts, Decimal("0")) == Decimal(total)

    def test_count_below_two(self) -> None:
        with pytest.raises(ValueError):
            split_installments(Decimal("100"), 1)

    def test_non_positive_total(self) -> None:
        with pytest.raises(ValueError):
            split_installments(Decimal("0"), 2)

    def test_parts_would_be_zero(self) -> None:
        """1센트를 3회로 나눌 수 없음"""
        with pytest.raises(ValueError):
            split_installments(Decimal("0.01"), 3)
