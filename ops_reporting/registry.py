from ops_reporting.contracts import SourceKind


class SourceNotFoundError(Exception):
    def __init__(self, source_kind: str):
        super().__init__(f"No log source registered for source_kind: {source_kind!r}")
        self.source_kind = source_kind


class SourceRegistry:
    def __init__(self):
        self._sources: dict[str, object] = {}

    def register(self, source_cls) -> None:
        instance = source_cls()
        self._sources[SourceKind(instance.source_kind).value] = instance

    def resolve(self, source_kind: str):
        key = getattr(source_kind, "value", source_kind)
        if key not in self._sources:
            raise SourceNotFoundError(key)
        return self._sources[key]

    def keys(self) -> list[str]:
        return sorted(self._sources.keys())

    def sources(self) -> list:
        """Registered sources in registration order."""
        return list(self._sources.values())


def build_default_registry() -> SourceRegistry:
    from ops_reporting.sources.production_log import ProductionLogSource
    from ops_reporting.sources.shipping_log import ShippingLogSource

    registry = SourceRegistry()
    # Shipping infers lines from assignments the production pass writes.
    registry.register(ProductionLogSource)
    registry.register(ShippingLogSource)
    return registry
