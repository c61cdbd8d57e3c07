"""Controller used when radio control is disabled."""

from __future__ import annotations

from .base import RadioController, RadioError, RadioErrorKind, RadioMode


class NoOpController(RadioController):
    def is_connected(self) -> bool:
        return False

    def connect(self) -> None:
        raise RadioError(RadioErrorKind.NOT_CONFIGURED)

    def disconnect(self) -> None:
        return None

    def tune(self, frequency_khz: float, mode: RadioMode) -> None:
        raise RadioError(RadioErrorKind.NOT_CONFIGURED)

    @property
    def backend_name(self) -> str:
        return "None"
