from __future__ import annotations

import pytest

from healthbridge.core.errors import SdkDriverError
from healthbridge.sdk.registry import SdkDriverRegistry
from healthbridge.sdk.simulated import SimulatedSdkClient


def test_default_registry_has_simulated():
    reg = SdkDriverRegistry.default()
    assert reg.drivers() == ["simulated"]
    assert reg.has("SIMULATED")
    assert reg.get_class("Simulated") is SimulatedSdkClient


def test_create_passes_params():
    reg = SdkDriverRegistry.default()
    sdk = reg.create("simulated", device_name="Ring", scan_delay_s=0.5)
    try:
        assert isinstance(sdk, SimulatedSdkClient)
        assert sdk.device_name == "Ring"
        assert sdk.scan_delay_s == 0.5
    finally:
        sdk.close()


def test_unknown_driver_lists_known_ones():
    reg = SdkDriverRegistry.default()
    with pytest.raises(SdkDriverError) as ei:
        reg.create("vendor")
    assert ei.value.code == "sdk_driver_error"
    assert "simulated" in ei.value.hint
    assert ei.value.details == {"driver": "vendor"}


def test_bad_params_raise_driver_error():
    reg = SdkDriverRegistry.default()
    with pytest.raises(SdkDriverError) as ei:
        reg.create("simulated", baudrate=115200)
    assert "baudrate" in ei.value.hint
    assert ei.value.details["params"] == {"baudrate": 115200}


def test_register_custom_driver_case_insensitive():
    class VendorSdk(SimulatedSdkClient):
        pass

    reg = SdkDriverRegistry({})
    assert reg.drivers() == []
    reg.register("Vendor", VendorSdk)
    assert reg.has("vendor")
    assert isinstance(reg.create("VENDOR"), VendorSdk)


def test_empty_registry_hint():
    with pytest.raises(SdkDriverError) as ei:
        SdkDriverRegistry({}).get_class("x")
    assert "(none)" in ei.value.hint
