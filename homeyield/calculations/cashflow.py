"""Monthly operating and levered cash flow projection."""

from dataclasses import dataclass
from typing import Tuple

from ..models.assumptions import Assumptions
from .debt import DebtService
from .schedule import Schedule


@dataclass(frozen=True)
class CashFlowSeries:
    """Per-month cash flows over months 0..N.

    Expenses are negative. Operating CF is revenue plus the five expense
    lines; levered CF adds the net debt service of all loans.
    """
    # Revenue
    raw_revenue: Tuple[float, ...]  # Before occupancy
    revenue: Tuple[float, ...]  # Occupancy-adjusted

    # Operating expenses
    insurance: Tuple[float, ...]
    hoa: Tuple[float, ...]
    property_tax: Tuple[float, ...]
    maintenance: Tuple[float, ...]
    management_fee: Tuple[float, ...]

    # Cash flows
    operating_cf: Tuple[float, ...]
    total_debt_service: Tuple[float, ...]  # Extra + scheduled - interest, all loans
    levered_cf: Tuple[float, ...]

    # Valuation
    property_value: Tuple[float, ...]

    @property
    def month_count(self) -> int:
        return len(self.levered_cf)

    @property
    def total_operating_expenses(self) -> Tuple[float, ...]:
        return tuple(
            sum(lines)
            for lines in zip(
                self.insurance, self.hoa, self.property_tax, self.maintenance, self.management_fee
            )
        )


def property_value_at(purchase_price: float, annual_growth: float, month: int) -> float:
    """Property value at a month; months 0 and 1 both carry the purchase price."""
    return purchase_price * (1 + annual_growth / 12) ** max(0, month - 1)


def rent_growth_factor(annual_increase: float, month: int) -> float:
    """Rent steps up once every 12 operating months."""
    years_since_start = (month - 1) // 12
    return (1 + annual_increase) ** max(0, years_since_start)


def project_cash_flows(
    schedule: Schedule,
    assumptions: Assumptions,
    debt_service: DebtService,
) -> CashFlowSeries:
    """Project revenue, expenses, debt service and property value by month.

    Revenue and the management fee accrue every operating month. Insurance,
    HOA, property tax and maintenance are charged once every 12 months:
    - Basic mode grows insurance/HOA/maintenance with one CPI rate,
      (1 + cpi/12)^(t-1), and takes revenue at 100% occupancy.
    - Advanced mode grows each line with its own rate, (1 + g/12)^t, and
      scales revenue by the occupancy rate.
    Property tax is the tax rate times that month's property value.

    Args:
        schedule: Timeline flags.
        assumptions: Deal assumptions.
        debt_service: Loan ledgers.

    Returns:
        CashFlowSeries for every month.
    """
    a = assumptions
    n = schedule.month_count
    advanced = a.is_advanced

    raw_revenue = [0.0] * n
    revenue = [0.0] * n
    insurance = [0.0] * n
    hoa = [0.0] * n
    property_tax = [0.0] * n
    maintenance = [0.0] * n
    management_fee = [0.0] * n
    operating_cf = [0.0] * n
    levered_cf = [0.0] * n
    property_value = [0.0] * n

    net_debt_service = debt_service.total_debt_service

    for t in schedule.months:
        property_value[t] = property_value_at(a.purchase_price, a.home_growth_rate, t)

        if schedule.hold_flag[t]:
            raw_revenue[t] = a.monthly_rent * rent_growth_factor(a.annual_rent_increase, t)
            revenue[t] = raw_revenue[t] * a.occupancy_rate if advanced else raw_revenue[t]

            management_fee[t] = -revenue[t] * a.management_fee

            if schedule.annual_flag[t]:
                if advanced:
                    insurance[t] = -a.annual_insurance * (1 + a.annual_insurance_growth / 12) ** t
                    hoa[t] = -a.annual_hoa * (1 + a.annual_hoa_growth / 12) ** t
                    maintenance[t] = -a.annual_maintenance * (1 + a.maintenance_growth / 12) ** t
                else:
                    cpi = (1 + a.cpi_assumption / 12) ** max(0, t - 1)
                    insurance[t] = -a.annual_insurance * cpi
                    hoa[t] = -a.annual_hoa * cpi
                    maintenance[t] = -a.annual_maintenance * cpi
                property_tax[t] = -property_value[t] * a.annual_property_tax

        operating_cf[t] = (
            revenue[t]
            + insurance[t]
            + hoa[t]
            + property_tax[t]
            + maintenance[t]
            + management_fee[t]
        )
        levered_cf[t] = operating_cf[t] + net_debt_service[t]

    return CashFlowSeries(
        raw_revenue=tuple(raw_revenue),
        revenue=tuple(revenue),
        insurance=tuple(insurance),
        hoa=tuple(hoa),
        property_tax=tuple(property_tax),
        maintenance=tuple(maintenance),
        management_fee=tuple(management_fee),
        operating_cf=tuple(operating_cf),
        total_debt_service=tuple(net_debt_service),
        levered_cf=tuple(levered_cf),
        property_value=tuple(property_value),
    )
