"""ConfigObserver port: domain events emitted while loading configuration."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, version: str) -> None: ...

    def config_plan_gating_without_sentinel(self, sentinel: str) -> None: ...
