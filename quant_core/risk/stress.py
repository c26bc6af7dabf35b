"""Scripted stress scenarios applied to a portfolio value.

Each scenario shocks the value multiplicatively:

    stressed = value * (1 + market_decline)
                     * (1 - volatility_increase * 0.1)
                     * (1 - liquidity_decrease * 0.15)

and scales the parametric VaR by 1 + volatility_increase
+ correlation_increase * 0.5.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from quant_core.models import StressResult

VOLATILITY_VALUE_IMPACT = 0.1
LIQUIDITY_VALUE_IMPACT = 0.15
CORRELATION_VAR_IMPACT = 0.5


class StressScenario(BaseModel):
    """Named market shock."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    market_decline: float = 0.0  # e.g. -0.4 for a 40% decline
    volatility_increase: float = 0.0
    correlation_increase: float = 0.0
    liquidity_decrease: float = 0.0
    rate_increase: float = 0.0


DEFAULT_SCENARIOS: tuple[StressScenario, ...] = (
    StressScenario(
        name="CRASH_2008",
        description="2008 financial crisis",
        market_decline=-0.4,
        volatility_increase=0.3,
        correlation_increase=0.2,
    ),
    StressScenario(
        name="COVID_CRASH",
        description="Pandemic market crash",
        market_decline=-0.3,
        volatility_increase=0.4,
        liquidity_decrease=0.5,
    ),
    StressScenario(
        name="INTEREST_RATE_SHOCK",
        description="Interest rate shock",
        market_decline=-0.15,
        rate_increase=0.02,
    ),
    StressScenario(
        name="FLASH_CRASH",
        description="Flash crash",
        market_decline=-0.2,
    ),
)


def estimate_recovery_time(impact: float) -> str:
    """Qualitative recovery estimate bucketed by |impact|."""
    severity = abs(impact)
    if severity < 0.1:
        return "1-2 weeks"
    if severity < 0.2:
        return "1-3 months"
    if severity < 0.3:
        return "3-6 months"
    if severity < 0.4:
        return "6-12 months"
    return "over 1 year"


def stress_var_multiplier(scenario: StressScenario) -> float:
    return 1.0 + scenario.volatility_increase + scenario.correlation_increase * CORRELATION_VAR_IMPACT


def simulate_scenario(
    current_value: float,
    scenario: StressScenario,
    base_var: float | None = None,
) -> StressResult:
    """Apply one scenario to ``current_value``.

    ``market_impact`` is the first-order effect of the market decline alone;
    ``value_impact`` includes the volatility and liquidity adjustments.
    """
    market_impact = current_value * scenario.market_decline

    stressed = current_value * (1 + scenario.market_decline)
    stressed *= 1 - scenario.volatility_increase * VOLATILITY_VALUE_IMPACT
    stressed *= 1 - scenario.liquidity_decrease * LIQUIDITY_VALUE_IMPACT

    value_impact = stressed - current_value
    pct = value_impact / current_value if current_value else 0.0

    return StressResult(
        scenario=scenario.name,
        market_impact=market_impact,
        value_impact=value_impact,
        stressed_value=stressed,
        percentage_change=pct,
        stressed_var=None if base_var is None else base_var * stress_var_multiplier(scenario),
        recovery_time=estimate_recovery_time(pct),
    )


def run_stress_tests(
    current_value: float,
    base_var: float | None = None,
    scenarios: tuple[StressScenario, ...] | list[StressScenario] = DEFAULT_SCENARIOS,
) -> list[StressResult]:
    """Run every scenario against the portfolio value, in order."""
    return [simulate_scenario(current_value, s, base_var) for s in scenarios]
