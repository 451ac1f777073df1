class AutomationError(Exception):
    """인보이스/급여 자동화에서 발생하는 도메인 에러의 부모 클래스."""


class InvalidRequestError(AutomationError):
    """요청 바디/쿼리가 허용된 형태 중 어디에도 맞지 않음 → 400"""


class NotFoundError(AutomationError):
    """참조한 Document가 없음. 처리 라우트에서는 500, 조회 API에서는 404."""


class InvalidDateError(AutomationError, ValueError):
    """지원하는 어떤 날짜 형식으로도 파싱할 수 없는 값."""


class MissingPayRateError(AutomationError):
    """직원의 시급(pay rate) 설정이 없어서 금액을 계산할 수 없음."""
