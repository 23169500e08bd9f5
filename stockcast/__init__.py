"""Stock indicators, autoregressive forecasts and a genetic trend model."""

__version__ = "0.1.0"

__all__ = ["ar", "axis", "gene", "indicators", "models", "pipeline", "queue", "storage"]