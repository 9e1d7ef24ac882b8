# healthbridge/sdk/codes.py
"""Status, state and event codes reported by the vendor SDK."""

CODE_OK = 0
CODE_FAILED = 1

# connect_state()
STATE_DISCONNECTED = 0
STATE_CONNECTED = 10

# ConnectionStateChanged.ble_state
BLE_STATE_DISCONNECTED = 0

# RealTimeSample.data_type
REAL_DATA_SPO2 = 1538

# MeasurementComplete.cmd
CMD_MEASUREMENT_COMPLETE = 1038

MEASURE_OFF = 0
MEASURE_ON = 1

HISTORY_TYPE_SPO2 = 2
