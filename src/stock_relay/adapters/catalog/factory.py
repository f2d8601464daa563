from __future__ import annotations

from stock_relay.adapters.catalog.memory import InMemoryCatalog
from stock_relay.adapters.catalog.woocommerce import WooCommerceGateway
from stock_relay.app.models.config import CatalogConfig
from stock_relay.util.errors import ConfigError


def build_gateway(config: CatalogConfig) -> WooCommerceGateway | InMemoryCatalog:
    if config.type == "memory":
        return InMemoryCatalog()
    if not config.configured:
        raise ConfigError("catalog store_url, consumer_key and consumer_secret are required")
    return WooCommerceGateway(
        store_url=config.store_url,
        consumer_key=config.consumer_key,
        consumer_secret=config.consumer_secret,
        timeout_seconds=config.timeout_seconds,
        per_page=config.per_page,
    )
