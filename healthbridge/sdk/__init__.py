from .base import SdkClient, DeviceInfo
from .events import DeviceEvent, RealTimeSample, MeasurementComplete, ConnectionStateChanged
from .registry import SdkDriverRegistry
from .simulated import SimulatedSdkClient

__all__ = [
    "SdkClient", "DeviceInfo",
    "DeviceEvent", "RealTimeSample", "MeasurementComplete", "ConnectionStateChanged",
    "SdkDriverRegistry",
    "SimulatedSdkClient"]
