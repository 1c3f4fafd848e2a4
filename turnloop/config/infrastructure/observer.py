"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, version: str) -> None:
        self._log.info("config.loaded", name=name, version=version)

    def config_plan_gating_without_sentinel(self, sentinel: str) -> None:
        self._log.warning(
            "config.plan_gating_without_sentinel",
            sentinel=sentinel,
            message=(
                "Plan gating is enabled but the system instruction never asks the "
                "model to emit the approval sentinel; the loop will not suspend"
            ),
        )
