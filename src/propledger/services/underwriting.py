"""Property underwriting math: acquisition, cash flow and refinance metrics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..models.property import PORTFOLIO_STATUSES, Property, Underwriting

OFFER_PCT_OF_LIST = 0.80
MAX_PURCHASE_ARV_PCT = 0.75
CARRYING_MONTHS = 2

# Fractions seeded on every new property.
DEFAULT_ASSUMPTIONS: dict[str, float] = {
    "vacancy_pct": 0.10,
    "reserves_pct": 0.05,
    "maintenance_pct": 0.05,
    "closing_costs_pct": 0.1135,
    "down_payment_pct": 0.25,
    "piti_factor": 0.0099,
    "heloc_interest_pct": 0.08,
    "heloc_fee_pct": 0.02,
    "refi_ltv": 0.65,
    "refi_cost_pct": 0.03,
}

PERCENT_FIELDS = (frozenset(DEFAULT_ASSUMPTIONS) - {"piti_factor"}) | {"adjustment_factor"}


def normalize_pct(value: Optional[float]) -> Optional[float]:
    """Accept either a fraction (``0.25``) or a whole percent (``25``); sign is kept."""

    if value is None:
        return None
    return value / 100 if abs(value) > 1 else value


def default_underwriting(property_id: int | None = None) -> Underwriting:
    return Underwriting(property_id=property_id, **DEFAULT_ASSUMPTIONS)  # type: ignore[arg-type]


@dataclass(frozen=True)
class UnderwritingMetrics:
    offer_80pct_of_list: float
    arv_market_based: float
    arv_cost_based: float
    max_purchase_price: float
    down_payment: float
    closing_costs: float
    loan_amount: float
    estimated_piti: float
    heloc_payment: float
    vacancy: float
    reserves: float
    maintenance: float
    reserve_bucket_total: float
    net_cash_flow: float
    annual_net_cash_flow: float
    refi_amount: float
    refi_costs: float
    refi_net_proceeds: float
    heloc_remaining_after_refi: float
    cash_to_owner: float
    total_cash_invested: float
    cash_left_in_deal: float
    carrying_cost_2mo_vacancy: float
    max_heloc_break_even: float
    min_refi_ltv_break_even: Optional[float]
    refi_piti: float
    net_cash_flow_post_refi: float
    annual_net_cash_flow_post_refi: float

    def to_dict(self) -> dict[str, Any]:
        return {
            key: (round(value, 2) if isinstance(value, float) else value)
            for key, value in asdict(self).items()
        }


def _num(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def compute_underwriting(
    inputs: Underwriting, square_footage: Optional[float] = None
) -> UnderwritingMetrics:
    """Derive every underwriting metric from raw inputs.

    Missing inputs count as zero; percentages are read as fractions, with
    whole-number percents (``25``) divided by 100.
    """

    def pct(name: str) -> float:
        return _num(normalize_pct(getattr(inputs, name)))

    list_price = _num(inputs.list_price)
    purchase = _num(inputs.purchase_price_actual)
    rehab = _num(inputs.rehab_cost_est)
    heloc_balance = _num(inputs.heloc_balance_est)
    rent = _num(inputs.rent_est)
    utilities = _num(inputs.utilities_est)
    admin = _num(inputs.admin_monthly_est)
    piti_factor = _num(inputs.piti_factor)
    heloc_rate = pct("heloc_interest_pct") + pct("heloc_fee_pct")

    arv_market = _num(square_footage) * _num(inputs.market_price_per_sf) * (
        1 + pct("adjustment_factor")
    )
    arv_cost = purchase + rehab + _num(inputs.upgrade_premium)

    down_payment = purchase * pct("down_payment_pct")
    closing_costs = purchase * pct("closing_costs_pct")
    loan = purchase - down_payment
    piti = loan * piti_factor
    heloc_payment = heloc_balance * heloc_rate / 12

    vacancy = rent * pct("vacancy_pct")
    reserves = rent * pct("reserves_pct")
    maintenance = rent * pct("maintenance_pct")
    bucket = vacancy + reserves + maintenance

    net_cash_flow = rent - (piti + bucket + utilities + admin + heloc_payment)

    refi_cost_pct = pct("refi_cost_pct")
    refi_amount = arv_market * pct("refi_ltv")
    refi_costs = refi_amount * refi_cost_pct
    net_proceeds = refi_amount - refi_costs - loan
    heloc_remaining = max(heloc_balance - max(net_proceeds, 0.0), 0.0)
    cash_to_owner = max(net_proceeds - heloc_balance, 0.0)
    total_invested = down_payment + closing_costs
    carrying = CARRYING_MONTHS * (piti + utilities + admin)

    denominator = arv_market * (1 - refi_cost_pct)
    min_refi_ltv = (loan + heloc_balance + carrying) / denominator if denominator else None

    refi_piti = refi_amount * piti_factor
    post_refi = rent - (
        refi_piti + bucket + utilities + admin + heloc_remaining * heloc_rate / 12
    )

    return UnderwritingMetrics(
        offer_80pct_of_list=list_price * OFFER_PCT_OF_LIST,
        arv_market_based=arv_market,
        arv_cost_based=arv_cost,
        max_purchase_price=arv_market * MAX_PURCHASE_ARV_PCT - rehab,
        down_payment=down_payment,
        closing_costs=closing_costs,
        loan_amount=loan,
        estimated_piti=piti,
        heloc_payment=heloc_payment,
        vacancy=vacancy,
        reserves=reserves,
        maintenance=maintenance,
        reserve_bucket_total=bucket,
        net_cash_flow=net_cash_flow,
        annual_net_cash_flow=net_cash_flow * 12,
        refi_amount=refi_amount,
        refi_costs=refi_costs,
        refi_net_proceeds=net_proceeds,
        heloc_remaining_after_refi=heloc_remaining,
        cash_to_owner=cash_to_owner,
        total_cash_invested=total_invested,
        cash_left_in_deal=total_invested - cash_to_owner,
        carrying_cost_2mo_vacancy=carrying,
        max_heloc_break_even=refi_amount - refi_costs - loan - carrying,
        min_refi_ltv_break_even=min_refi_ltv,
        refi_piti=refi_piti,
        net_cash_flow_post_refi=post_refi,
        annual_net_cash_flow_post_refi=post_refi * 12,
    )


@dataclass(frozen=True)
class PortfolioTotals:
    count: int
    initial_cash_flow: float
    post_refi_cash_flow: float
    reserve_bucket: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "initial_cash_flow": round(self.initial_cash_flow, 2),
            "post_refi_cash_flow": round(self.post_refi_cash_flow, 2),
            "reserve_bucket": round(self.reserve_bucket, 2),
        }


def is_portfolio(prop: Property) -> bool:
    return prop.status in PORTFOLIO_STATUSES


def portfolio_totals(
    rows: Iterable[tuple[Property, UnderwritingMetrics]],
    selected_ids: Optional[Sequence[int]] = None,
) -> PortfolioTotals:
    """Sum monthly cash flow and reserves over the selected properties (all when ``None``)."""

    wanted = set(selected_ids) if selected_ids is not None else None
    count = 0
    initial = post_refi = bucket = 0.0
    for prop, metrics in rows:
        if wanted is not None and prop.id not in wanted:
            continue
        count += 1
        initial += metrics.net_cash_flow
        post_refi += metrics.net_cash_flow_post_refi
        bucket += metrics.reserve_bucket_total
    return PortfolioTotals(
        count=count,
        initial_cash_flow=initial,
        post_refi_cash_flow=post_refi,
        reserve_bucket=bucket,
    )


def apply_inputs(underwriting: Underwriting, values: Mapping[str, Optional[float]]) -> Underwriting:
    """Copy validated numeric inputs onto ``underwriting``, normalizing percents."""

    for name, value in values.items():
        if name in PERCENT_FIELDS:
            value = normalize_pct(value)
        setattr(underwriting, name, value)
    return underwriting
