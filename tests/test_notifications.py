import json

import httpx

from payroll_automation.core.config import Settings
from payroll_automation.core.notifications import Notifier
from payroll_automation.schemas.payroll import Payroll


def _payroll() -> Payroll:
    return Payroll(
        id="pay-1",
        invoiceId="inv-1",
        invoiceNumber="EMP-JANE-DOE-2024-11",
        employeeId="emp-1",
        name="Jane Doe",
        period="2024-11",
        month="December",
        date="01.12.2024",
        totalAmount=511.5,
        currency="AUD",
    )


async def test_payload_sent_to_notify_endpoint():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    notifier = Notifier("http://notification:8000", transport=httpx.MockTransport(handler))

    outcome = await notifier.payroll_created(_payroll())

    assert outcome.delivered is True
    assert outcome.error is None
    assert captured["url"] == "http://notification:8000/notify"
    assert captured["body"] == {
        "employeeId": "emp-1",
        "type": "payroll_created",
        "payrollId": "pay-1",
        "invoiceNumber": "EMP-JANE-DOE-2024-11",
        "period": "2024-11",
        "totalAmount": 511.5,
        "currency": "AUD",
    }


async def test_error_status_is_reported_not_raised():
    notifier = Notifier(
        "http://notification",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )

    outcome = await notifier.payroll_created(_payroll())

    assert outcome.delivered is False
    assert "500" in outcome.error


async def test_connection_failure_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    notifier = Notifier("http://notification", transport=httpx.MockTransport(handler))

    outcome = await notifier.payroll_created(_payroll())

    assert outcome.delivered is False
    assert "ConnectError" in outcome.error


def test_notifier_disabled_without_base_url():
    settings = Settings(NOTIFICATION_SERVICE_BASE_URL=None)
    assert Notifier.from_settings(settings) is None

    enabled = Notifier.from_settings(Settings(NOTIFICATION_SERVICE_BASE_URL="http://n"))
    assert isinstance(enabled, Notifier)
