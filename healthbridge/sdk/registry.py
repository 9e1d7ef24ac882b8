# healthbridge/sdk/registry.py
from __future__ import annotations

from typing import Any, Dict, Type

from healthbridge.core.errors import SdkDriverError

from .base import SdkClient
from .simulated import SimulatedSdkClient


class SdkDriverRegistry:
    """
    Maps driver keys -> concrete SdkClient classes.

    Vendor bindings register here under their own key; "simulated" is built in.
    """

    def __init__(self, drivers: Dict[str, Type[SdkClient]]):
        # normalize keys to be case-insensitive
        self._drivers: Dict[str, Type[SdkClient]] = {k.lower(): v for k, v in drivers.items()}

    @classmethod
    def default(cls) -> "SdkDriverRegistry":
        return cls(
            drivers={
                "simulated": SimulatedSdkClient,
            }
        )

    def register(self, driver: str, client_cls: Type[SdkClient]) -> None:
        self._drivers[driver.lower()] = client_cls

    def has(self, driver: str) -> bool:
        return driver.lower() in self._drivers

    def drivers(self) -> list[str]:
        return sorted(self._drivers.keys())

    def get_class(self, driver: str) -> Type[SdkClient]:
        key = driver.lower()
        if key not in self._drivers:
            raise SdkDriverError(
                f"SDK driver '{driver}' not registered.",
                hint=f"Known drivers: {', '.join(self.drivers()) or '(none)'}",
                details={"driver": driver},
            )
        return self._drivers[key]

    def create(self, driver: str, **params: Any) -> SdkClient:
        """
        Instantiate an SDK client by driver key.
        """
        client_cls = self.get_class(driver)
        try:
            return client_cls(**params)
        except TypeError as e:
            # constructor mismatch
            raise SdkDriverError(
                f"Failed to construct SDK driver '{driver}'.",
                hint=str(e),
                details={"driver": driver, "params": dict(params)},
            ) from None
