import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from payroll_automation.core.config import Settings
from payroll_automation.schemas.payroll import Payroll

logger = logging.getLogger(__name__)


@dataclass
class NotificationOutcome:
    delivered: bool
    error: Optional[str] = None


class Notifier:
    """
    Notification Service에 REST로 알림 전달.
    실패해도 예외를 삼키지 않고 NotificationOutcome으로 돌려준다.
    (계속 진행할지는 호출하는 쪽이 결정)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["Notifier"]:
        if not settings.NOTIFICATION_SERVICE_BASE_URL:
            return None
        return cls(
            settings.NOTIFICATION_SERVICE_BASE_URL,
            timeout=settings.NOTIFICATION_TIMEOUT,
        )

    async def payroll_created(self, payroll: Payroll) -> NotificationOutcome:
        payload = {
            "employeeId": payroll.employeeId,
            "type": "payroll_created",
            "payrollId": payroll.id,
            "invoiceNumber": payroll.invoiceNumber,
            "period": payroll.period,
            "totalAmount": payroll.totalAmount,
            "currency": payroll.currency,
        }

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post("/notify", json=payload)
        except httpx.HTTPError as exc:
            return NotificationOutcome(delivered=False, error=f"{type(exc).__name__}: {exc}")

        if resp.status_code >= 400:
            return NotificationOutcome(
                delivered=False,
                error=f"Notification service returned {resp.status_code} {resp.text}",
            )
        return NotificationOutcome(delivered=True)
