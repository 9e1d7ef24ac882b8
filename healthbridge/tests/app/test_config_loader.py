from __future__ import annotations

from pathlib import Path

import pytest

from healthbridge.app.config import BridgeConfig
from healthbridge.core.config_loader import config_from_dict, default_config_path, load_config
from healthbridge.core.errors import ConfigError


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "bridge.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_packaged_default_config_loads():
    assert default_config_path().exists()
    cfg = load_config()

    assert cfg.channel == "com.yucheng.smarthealthpro/ycbt"
    assert cfg.event_channel == "com.yucheng.smarthealthpro/ycbt_events"
    assert cfg.scan_timeout_s == 20.0
    assert cfg.sdk_driver == "simulated"
    assert cfg.sdk_params["device_mac"] == "C0:FF:EE:00:00:01"
    assert len(cfg.sdk_params["history"]) == 2


def test_minimal_file_uses_defaults(tmp_path):
    cfg = load_config(_write(tmp_path, "bridge: {}\n"))
    assert cfg == BridgeConfig()


def test_overrides(tmp_path):
    p = _write(
        tmp_path,
        """
bridge:
  scan_timeout_s: 5
  reply_timeout_s: 7.5
  unnamed_device: no name
sdk:
  driver: Simulated
  params:
    connect_ok: false
""",
    )
    cfg = load_config(p)
    assert cfg.scan_timeout_s == 5.0
    assert cfg.reply_timeout_s == 7.5
    assert cfg.unnamed_device == "no name"
    assert cfg.sdk_driver == "Simulated"
    assert cfg.sdk_params == {"connect_ok": False}


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path / "nope.yml")
    assert ei.value.code == "config_error"
    assert ei.value.hint


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError, match="parse"):
        load_config(_write(tmp_path, "bridge: [unclosed\n"))


def test_root_must_be_mapping(tmp_path):
    with pytest.raises(ConfigError, match="root"):
        load_config(_write(tmp_path, "- a\n- b\n"))


def test_empty_file_misses_bridge_node(tmp_path):
    with pytest.raises(ConfigError, match="'bridge'"):
        load_config(_write(tmp_path, ""))


@pytest.mark.parametrize("value", [0, -1, "soon"])
def test_bad_timeouts(value):
    with pytest.raises(ConfigError) as ei:
        config_from_dict({"bridge": {"scan_timeout_s": value}})
    assert ei.value.details["key"] == "scan_timeout_s"


@pytest.mark.parametrize(
    "doc",
    [
        {"bridge": {}, "sdk": ["simulated"]},
        {"bridge": {}, "sdk": {"params": [1, 2]}},
    ],
)
def test_sdk_section_shapes(doc):
    with pytest.raises(ConfigError):
        config_from_dict(doc)
