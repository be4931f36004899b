"""
Report rendering — dealer, executive summary, ROI and network reports as HTML.

Renderers are pure: metrics + benchmark in, printable HTML document out.
Dealer names and lead-source labels come from uploaded files, so they are
passed through escape_html() before reaching the templates.
"""
import os
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import (
    ANNUALIZATION_FACTOR, DEFAULT_AVG_DEAL_VALUE, DEFAULT_PERFORMANCE_TIER,
    NO_RESPONSE_ALERT_THRESHOLD, PERFORMANCE_TIERS,
)
from app.pipeline.aggregate import percentage, round_half_up
from app.pipeline.base import DealerMetrics
from app.pipeline.roi import ROIResult, to_number
from app.services.sanitize import escape_html

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'templates')

REPORT_BRAND = 'Auto Audit Pro'


def _thousands(value) -> str:
    number = to_number(value)
    if number.is_integer():
        return f'{int(number):,}'
    return f'{number:,.2f}'


def _money(value) -> str:
    return '$' + _thousands(value)


_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(['html']),
)
_env.filters['thousands'] = _thousands
_env.filters['money'] = _money


# ── Analysis helpers ──────────────────────────────────────────────────────────

def performance_tier(conversion_rate) -> str:
    rate = to_number(conversion_rate)
    for threshold, label in PERFORMANCE_TIERS:
        if rate >= threshold:
            return label
    return DEFAULT_PERFORMANCE_TIER


def top_sources(metrics: DealerMetrics, limit: int = 5) -> List[Dict]:
    """Busiest lead sources first, each with its share of the dealer's leads."""
    ranked = sorted(metrics.leads_by_source.items(), key=lambda item: item[1], reverse=True)
    return [
        {
            'source': source,
            'count': count,
            'percentage': str(percentage(count, metrics.total_leads, Decimal('0.1'))),
        }
        for source, count in ranked[:limit]
    ]


def recommendations(metrics: DealerMetrics, benchmark: Dict) -> List[str]:
    items = []
    network_response = to_number(benchmark.get('responseRate'))
    network_conversion = to_number(benchmark.get('conversionRate'))

    if to_number(metrics.response_rate) < network_response:
        items.append(f"Improve response rate to match network average of {benchmark.get('responseRate')}%")
    if to_number(metrics.conversion_rate) < network_conversion:
        items.append(
            f"Focus on conversion optimization to reach network average of {benchmark.get('conversionRate')}%"
        )
    if to_number(metrics.no_response_rate) > NO_RESPONSE_ALERT_THRESHOLD:
        items.append(
            f"Reduce no-response rate from {metrics.no_response_rate}% to under {NO_RESPONSE_ALERT_THRESHOLD}%"
        )
    items.append("Analyze top-performing lead sources for optimization opportunities")
    items.append("Implement automated response systems for faster lead engagement")
    return items


def revenue_impact(metrics: DealerMetrics, benchmark: Dict,
                   deal_value: float = DEFAULT_AVG_DEAL_VALUE) -> Dict:
    """Annualized sales and revenue now vs. at the network conversion rate."""
    network_rate = to_number(benchmark.get('conversionRate')) / 100
    annual_leads = metrics.total_leads * ANNUALIZATION_FACTOR

    current_sales = metrics.total_sales * ANNUALIZATION_FACTOR
    network_sales = round_half_up(annual_leads * network_rate)
    current_revenue = current_sales * deal_value
    network_revenue = round_half_up(annual_leads * network_rate * deal_value)

    return {
        'current_sales': current_sales,
        'network_sales': network_sales,
        'sales_opportunity': max(0, network_sales - current_sales),
        'current_revenue': current_revenue,
        'network_revenue': network_revenue,
        'revenue_opportunity': max(0, network_revenue - current_revenue),
    }


def compare(metrics: DealerMetrics, benchmark: Dict) -> Dict:
    """Dealer vs. network for the headline rates."""
    conversion = to_number(metrics.conversion_rate)
    response = to_number(metrics.response_rate)
    return {
        'conversion_above_network': conversion >= to_number(benchmark.get('conversionRate')),
        'response_above_network': response >= to_number(benchmark.get('responseRate')),
        'performance_tier': performance_tier(conversion),
    }


def dealer_analysis(metrics: DealerMetrics, benchmark: Dict) -> Dict:
    """JSON view of one dealer for the analysis panel."""
    data = metrics.to_dict()
    data.update(compare(metrics, benchmark))
    data['top_sources'] = top_sources(metrics)
    return data


# ── Renderers ─────────────────────────────────────────────────────────────────

def _base_context(generated_at: Optional[datetime]) -> Dict:
    generated_at = generated_at or datetime.now()
    return {
        'brand': REPORT_BRAND,
        'generated_at': generated_at,
        'report_date': generated_at.strftime('%m/%d/%Y'),
        'year': generated_at.year,
    }


def render_dealer_report(metrics: DealerMetrics, benchmark: Dict,
                         generated_at: Optional[datetime] = None) -> str:
    template = _env.get_template('reports/dealer.html')
    return template.render(
        dealer_name=escape_html(metrics.dealer_name),
        metrics=metrics,
        benchmark=benchmark,
        **compare(metrics, benchmark),
        **_base_context(generated_at),
    )


def render_executive_summary(metrics: DealerMetrics, benchmark: Dict,
                             deal_value: float = DEFAULT_AVG_DEAL_VALUE,
                             generated_at: Optional[datetime] = None) -> str:
    template = _env.get_template('reports/executive_summary.html')
    return template.render(
        dealer_name=escape_html(metrics.dealer_name),
        metrics=metrics,
        benchmark=benchmark,
        impact=revenue_impact(metrics, benchmark, deal_value),
        sources=[dict(item, source=escape_html(item['source'])) for item in top_sources(metrics, limit=10)],
        recommendations=recommendations(metrics, benchmark),
        **compare(metrics, benchmark),
        **_base_context(generated_at),
    )


def render_roi_report(result: ROIResult, dealer_name: Optional[str] = None,
                      generated_at: Optional[datetime] = None) -> str:
    template = _env.get_template('reports/roi.html')
    return template.render(
        dealer_name=escape_html(dealer_name) if dealer_name else 'Your Dealership',
        roi=result,
        **_base_context(generated_at),
    )


def render_network_report(benchmark: Dict, label: str,
                          generated_at: Optional[datetime] = None) -> str:
    template = _env.get_template('reports/network.html')
    return template.render(
        period=escape_html(label),
        benchmark=benchmark,
        **_base_context(generated_at),
    )
