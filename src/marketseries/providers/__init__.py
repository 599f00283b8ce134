"""Series provider registry."""

from __future__ import annotations

from marketseries.providers.base import BaseSeriesProvider

# Lazy registry: classes are imported on demand.
PROVIDER_CLASSES: dict[str, str] = {
    "polygon": "marketseries.providers.polygon.PolygonProvider",
    "coingecko": "marketseries.providers.coingecko.CoinGeckoProvider",
    "mock": "marketseries.providers.mock.MockProvider",
}


def create_provider(name: str, **kwargs) -> BaseSeriesProvider:
    """Instantiate a provider by name, forwarding kwargs to its constructor."""
    import importlib

    if name not in PROVIDER_CLASSES:
        raise ValueError(
            f"Unsupported provider '{name}'. Supported: {', '.join(PROVIDER_CLASSES)}"
        )
    dotted = PROVIDER_CLASSES[name]
    module_path, cls_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls(**kwargs)


__all__ = ["BaseSeriesProvider", "PROVIDER_CLASSES", "create_provider"]
