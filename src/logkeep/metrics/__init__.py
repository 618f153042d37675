from .metrics import MetricsCollector, StoreMetrics

__all__ = ["MetricsCollector", "StoreMetrics"]
