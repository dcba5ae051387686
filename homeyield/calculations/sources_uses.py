"""Sources and Uses of the acquisition capital stack."""

from dataclasses import dataclass

from ..models.assumptions import Assumptions


@dataclass(frozen=True)
class SourcesUses:
    """Capital stack at acquisition.

    Uses:
        purchase_price: Contract price of the property
        closing_costs: Non-financing closing costs
        financing_fees: Origination fees on the initial loan and second lien
        total_uses: Sum of all uses

    Sources:
        equity: Plug so that sources equal uses (not clamped, may be negative)
        second_lien_amount: Second lien principal (0 when unused)
        initial_loan_amount: Initial loan principal
        total_sources: Sum of all sources
    """
    # Sources
    equity: float
    second_lien_amount: float
    initial_loan_amount: float
    total_sources: float

    # Uses
    purchase_price: float
    closing_costs: float
    financing_fees: float
    total_uses: float

    def __post_init__(self):
        """Validate sources equal uses."""
        if self.total_sources != self.total_uses:
            raise ValueError(
                f"Sources ({self.total_sources:,.2f}) must equal "
                f"Uses ({self.total_uses:,.2f})"
            )

    @property
    def down_payment(self) -> float:
        return self.purchase_price - self.initial_loan_amount

    @property
    def total_financing(self) -> float:
        return self.initial_loan_amount + self.second_lien_amount


def calculate_sources_uses(assumptions: Assumptions) -> SourcesUses:
    """Calculate the initial capital stack.

    Equity is the plug: Equity = Total Uses - Total Financing, so total
    sources is reported as total uses.

    Args:
        assumptions: Deal assumptions.

    Returns:
        SourcesUses with equity, loans and fees.
    """
    purchase_price = assumptions.purchase_price
    down_payment = purchase_price * assumptions.down_payment_percent
    initial_loan = purchase_price - down_payment

    second_lien = assumptions.second_lien_amount if assumptions.has_second_lien else 0.0

    financing_fees = (
        initial_loan * assumptions.initial_loan_fee
        + second_lien * assumptions.second_lien_fee
    )
    total_uses = purchase_price + assumptions.closing_costs + financing_fees
    total_financing = initial_loan + second_lien
    equity = total_uses - total_financing

    return SourcesUses(
        equity=equity,
        second_lien_amount=second_lien,
        initial_loan_amount=initial_loan,
        total_sources=total_uses,
        purchase_price=purchase_price,
        closing_costs=assumptions.closing_costs,
        financing_fees=financing_fees,
        total_uses=total_uses,
    )
