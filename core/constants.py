"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → famledger/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Collections:
    """문서 저장소 컬렉션 이름

    하위 컬렉션(invoice_items, assets, movements)은 parent_id로 상위 문서에 연결.
    """

    USERS: str = "users"
    ACCOUNTS: str = "accounts"
    TRANSACTIONS: str = "transactions"
    CREDIT_CARDS: str = "credit_cards"
    INVOICES: str = "invoices"
    INVOICE_ITEMS: str = "invoice_items"
    RECURRING: str = "recurring_transactions"
    PORTFOLIOS: str = "portfolios"
    ASSETS: str = "assets"
    MOVEMENTS: str = "movements"
    BUDGETS: str = "budgets"
    CATEGORIES: str = "categories"
    DEBTS: str = "debts"


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 브라질 시간 (UTC-3, 서머타임 없음)
    TIMEZONE_OFFSET_HOURS: int = -3

    # 금액 반올림 단위 (센트)
    MONEY_QUANTUM: str = "0.01"

    DEFAULT_ACCOUNT_NAME: str = "Carteira"
    INVOICE_PAYMENT_CATEGORY: str = "Fatura de Cartão"
    INVESTMENT_CATEGORY: str = "Investimentos"
    DEBT_PAYMENT_LABEL: str = "Pagamento Parcela"

    JWT_ALGORITHM: str = "HS256"


class DefaultCategories:
    """신규 사용자에게 생성되는 기본 카테고리"""

    REVENUE: tuple[str, ...] = (
        "Salário",
        "Vendas",
        "Investimentos",
        "Freelance",
        "Presente",
    )
    EXPENSE: tuple[str, ...] = (
        "Alimentação",
        "Moradia",
        "Transporte",
        "Saúde",
        "Educação",
        "Lazer",
        "Impostos",
        "Vestuário",
        "Supermercado",
        "Fatura de Cartão",
    )


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    JOBS_LOGS_DIR: Path = LOGS_DIR / "jobs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "famledger_prod.db"
    SANDBOX_DB: Path = DATA_DIR / "famledger_sandbox.db"
