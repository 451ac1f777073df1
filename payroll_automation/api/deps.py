import json
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from payroll_automation.core.errors import InvalidRequestError
from payroll_automation.services.automation import AutomationService


def get_automation(request: Request) -> AutomationService:
    """
    FastAPI 의존성 주입용.
    startup에서 만들어 둔 MongoStore / 설정 / Notifier로 서비스를 구성한다.
    """
    state = request.app.state
    return AutomationService(
        state.store,
        state.settings,
        notifier=getattr(state, "notifier", None),
    )


async def read_json_body(request: Request) -> Any:
    """빈 바디는 {}로 취급. JSON이 아니면 InvalidRequestError."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidRequestError("Request body must be valid JSON") from None


def error_response(exc: Exception) -> JSONResponse:
    """
    처리 라우트 공통 에러 응답. 요청 형식 오류만 400, 나머지(없는 인보이스 포함)는 500.
    조회용 API(/invoices)의 404는 HTTPException으로 따로 처리한다.
    """
    if isinstance(exc, InvalidRequestError):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": str(exc) or type(exc).__name__},
    )
