"""
ROI projection — annual sales/revenue impact of a conversion-rate change.

Pure arithmetic: inputs are coerced (invalid → 0), clamped, and never raise.
Rounding follows the dashboard's display rules (half-up, like Math.round).
"""
import math
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from app.config import DEFAULT_AVG_DEAL_VALUE, ROI_REPORT_DEFAULTS
from app.pipeline.base import DealerMetrics


@dataclass
class ROIInputs:
    monthly_leads: float = 0.0
    current_conversion: float = 0.0
    target_conversion: float = 0.0
    avg_deal_value: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict, defaults: Optional[Dict] = None) -> 'ROIInputs':
        """Build inputs from loosely-typed form values.

        With `defaults`, any missing, zero or non-numeric field takes the
        default instead (the ROI report behaves that way).
        """
        values = {}
        for name in cls.__dataclass_fields__:
            number = to_number(data.get(name))
            if defaults is not None and not number:
                number = to_number(defaults.get(name))
            values[name] = number
        return cls(**values).clamped()

    def clamped(self) -> 'ROIInputs':
        """Coerce every field to a finite number, then clamp it to its range."""
        return ROIInputs(
            monthly_leads=max(0.0, to_number(self.monthly_leads)),
            current_conversion=min(100.0, max(0.0, to_number(self.current_conversion))),
            target_conversion=min(100.0, max(0.0, to_number(self.target_conversion))),
            avg_deal_value=max(0.0, to_number(self.avg_deal_value)),
        )

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ROIResult:
    inputs: ROIInputs
    annual_leads: float
    current_sales: int
    target_sales: int
    additional_sales: int
    current_revenue: float
    target_revenue: float
    additional_revenue: float
    percent_increase: float

    def to_dict(self) -> Dict:
        return asdict(self)


def to_number(value) -> float:
    """Coerce a form value to a finite float; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    return round_half_up(value * 10) / 10


def compute_roi(inputs: ROIInputs) -> ROIResult:
    inputs = inputs.clamped()

    annual_leads = inputs.monthly_leads * 12
    current_sales = round_half_up(annual_leads * (inputs.current_conversion / 100))
    target_sales = round_half_up(annual_leads * (inputs.target_conversion / 100))
    additional_sales = target_sales - current_sales

    current_revenue = current_sales * inputs.avg_deal_value
    target_revenue = target_sales * inputs.avg_deal_value
    additional_revenue = target_revenue - current_revenue

    if current_revenue > 0:
        percent_increase = round1(additional_revenue / current_revenue * 100)
    else:
        percent_increase = 0.0

    return ROIResult(
        inputs=inputs,
        annual_leads=annual_leads,
        current_sales=current_sales,
        target_sales=target_sales,
        additional_sales=additional_sales,
        current_revenue=current_revenue,
        target_revenue=target_revenue,
        additional_revenue=additional_revenue,
        percent_increase=percent_increase,
    )


def seed_inputs(dealer: Optional[DealerMetrics], benchmark: Dict,
                avg_deal_value: float = DEFAULT_AVG_DEAL_VALUE) -> ROIInputs:
    """Starting calculator values: the selected dealer, else the network benchmark."""
    if dealer is not None:
        monthly = dealer.monthly_lead_average
        conversion = to_number(dealer.conversion_rate)
    else:
        monthly = round_half_up(to_number(benchmark.get('totalLeads')) / 12)
        conversion = to_number(benchmark.get('conversionRate'))
    return ROIInputs(
        monthly_leads=monthly,
        current_conversion=conversion,
        target_conversion=conversion,
        avg_deal_value=avg_deal_value,
    ).clamped()


def improve_target(current_conversion, points) -> float:
    """Target conversion = current + N percentage points, to 2 places."""
    return round(to_number(current_conversion) + to_number(points), 2)


def report_inputs(data: Dict) -> ROIInputs:
    return ROIInputs.from_dict(data, defaults=ROI_REPORT_DEFAULTS)
