"""Core decision logic: indicators, models, strategies, fusion and risk math.

This package contains pure business logic with no I/O dependencies
(no network, no storage, no timers). The asynchronous services in
quant_engine/ wire it to market data, clocks and sinks.
"""
