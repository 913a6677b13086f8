import pytest

from ops_reporting.contracts import SourceKind
from ops_reporting.registry import SourceNotFoundError, SourceRegistry, build_default_registry
from ops_reporting.sources.production_log import ProductionLogSource
from ops_reporting.sources.shipping_log import ShippingLogSource


def test_register_and_resolve():
    registry = SourceRegistry()
    registry.register(ProductionLogSource)
    registry.register(ShippingLogSource)

    source = registry.resolve("PRODUCTION_LOG")
    assert source.source_kind is SourceKind.PRODUCTION_LOG

    source2 = registry.resolve(SourceKind.SHIPPING_LOG)
    assert source2.key_column == "shipping_log_key"


def test_default_registry_runs_production_first():
    registry = build_default_registry()
    assert [s.source_kind for s in registry.sources()] == [
        SourceKind.PRODUCTION_LOG,
        SourceKind.SHIPPING_LOG,
    ]
    assert registry.keys() == ["PRODUCTION_LOG", "SHIPPING_LOG"]


def test_unknown_raises_source_not_found_error():
    registry = SourceRegistry()
    with pytest.raises(SourceNotFoundError):
        registry.resolve("RECEIVING_LOG")
