"""Name → class lookup for signal strategies.

Strategy packages register their generator class on import; the fusion
engine resolves its configured strategy names here:

    @register_strategy(TREND_BREAKOUT_STRATEGY_NAME)
    class TrendBreakoutStrategy(BaseStrategy):
        ...

    create_strategy("trend_breakout", {"trend_period": 30})
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

_STRATEGIES: dict[str, type] = {}


def register_strategy(name: str):
    """Class decorator adding a strategy under ``name``.

    The class's ``name`` attribute is filled in when it is empty so that
    emitted signals carry the registered id.

    Raises:
        ValueError: ``name`` is already taken by another class.
    """

    def decorator(cls: type) -> type:
        existing = _STRATEGIES.get(name)
        if existing is not None:
            raise ValueError(f"Strategy '{name}' is already registered by {existing.__name__}")
        if not getattr(cls, "name", ""):
            cls.name = name
        _STRATEGIES[name] = cls
        logger.debug("Registered strategy %s (%s)", name, cls.__name__)
        return cls

    return decorator


def get_strategy_class(name: str) -> type:
    """Resolve a registered strategy class.

    Raises:
        KeyError: ``name`` is not registered.
    """
    try:
        return _STRATEGIES[name]
    except KeyError:
        known = ", ".join(list_strategies()) or "(none)"
        raise KeyError(f"Unknown strategy '{name}'. Available: {known}") from None


def create_strategy(name: str, params: dict[str, Any] | None = None):
    """Instantiate ``name`` from an optional mapping of config fields."""
    return get_strategy_class(name).from_params(params)


def list_strategies() -> list[str]:
    return sorted(_STRATEGIES)
