"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- workbenches: 워크벤치/계정과목/거래처
- records: 레코드 생성/확정/취소
- adjustments: 조정
- metrics: 재무 지표/예외 알림
- audit: 감사 로그
"""
