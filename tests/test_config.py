"""Tests for perch.config — frozen AppConfig and WebSocketConfig."""

import dataclasses

import pytest

from perch.config import AppConfig, WebSocketConfig
from perch.errors import ConfigurationError


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8000
        assert cfg.debug is False
        assert dict(cfg.global_headers) == {}
        assert cfg.state is None
        assert cfg.state_factory is None
        assert cfg.websocket is None
        assert cfg.static_dirs == ()

    def test_frozen(self) -> None:
        cfg = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.port = 9000  # type: ignore[misc]

    def test_state_modes_exclusive(self) -> None:
        with pytest.raises(ConfigurationError, match="not both"):
            AppConfig(state={"a": 1}, state_factory=dict)

    def test_either_state_mode_alone(self) -> None:
        assert AppConfig(state={"a": 1}).state == {"a": 1}
        assert AppConfig(state_factory=dict).state_factory is dict

    def test_websocket_path_must_be_absolute(self) -> None:
        with pytest.raises(ConfigurationError, match="must start with"):
            AppConfig(websocket=WebSocketConfig(path="ws"))

    def test_websocket_config(self) -> None:
        ws = WebSocketConfig(path="/ws", on_upgrade=lambda request: True)
        cfg = AppConfig(websocket=ws)
        assert cfg.websocket is ws
        assert cfg.websocket.on_message is None
