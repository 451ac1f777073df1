from typing import List, Optional

from payroll_automation.core.errors import MissingPayRateError
from payroll_automation.schemas.employee import EmployeePayRate


def resolve_pay_rate(
    pay_rates: List[EmployeePayRate],
    site_id: Optional[str],
    employee_id: str = "",
) -> EmployeePayRate:
    """
    기록의 현장(site)에 맞는 시급을 찾고, 없으면 첫 번째 시급으로 대체.
    시급이 하나도 없으면 MissingPayRateError.
    """
    if not pay_rates:
        raise MissingPayRateError(f"No pay rate configured for employee {employee_id}")

    if site_id:
        for pay_rate in pay_rates:
            if pay_rate.siteId == site_id:
                return pay_rate
    return pay_rates[0]
