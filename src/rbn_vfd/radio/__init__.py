"""Radio CAT control backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import RadioController, RadioError, RadioErrorKind, RadioMode
from .noop import NoOpController
from .rigctld import RigctldController

if TYPE_CHECKING:  # pragma: no cover
    from rbn_vfd.config import RadioConfig

BACKENDS = ("rigctld",)


def create_controller(config: "RadioConfig") -> RadioController:
    """Pick the controller for ``config``; disabled or unknown means no-op."""
    if not config.enabled:
        return NoOpController()
    if config.backend == "rigctld":
        return RigctldController(config.rigctld_host, config.rigctld_port)
    return NoOpController()


__all__ = [
    "BACKENDS",
    "NoOpController",
    "RadioController",
    "RadioError",
    "RadioErrorKind",
    "RadioMode",
    "RigctldController",
    "create_controller",
]
