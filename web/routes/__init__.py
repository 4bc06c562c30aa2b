"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계좌
- transactions: 수입/지출 거래, 분할
- transfers: 계좌 간 이체
- invoices: 카드 / 청구서
- recurring: 반복 거래
- investments: 포트폴리오 / 자산 / 이동 / 배당
- budgets: 예산 / 카테고리
- debts: 부채 / 할부 상환
- reconcile: 정합성 점검
"""
