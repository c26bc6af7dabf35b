from quant_engine.storage.prediction_cache import DEFAULT_MAX_SIZE, BoundedCache, fingerprint

__all__ = ["BoundedCache", "DEFAULT_MAX_SIZE", "fingerprint"]
