"""Tests for localsocket.__main__ entrypoint functions."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from loguru import logger

from localsocket import Hub
from localsocket.__main__ import load_events, main, register_trains, replay, setup_logging
from localsocket.config import TrainSpec
from localsocket.core.errors import LocalSocketConfigurationError

# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_removes_default_handler_and_adds_stderr(self):
        """setup_logging configures loguru with the correct level."""
        # Act
        with patch("localsocket.__main__.logger") as mock_logger, patch("localsocket.__main__._intercept_logging"):
            setup_logging(verbose=False)

            # Assert
            mock_logger.remove.assert_called_once()
            mock_logger.add.assert_called_once()
            assert mock_logger.add.call_args[1]["level"] == "INFO"

    def test_verbose_sets_debug_level(self):
        with patch("localsocket.__main__.logger") as mock_logger, patch("localsocket.__main__._intercept_logging"):
            setup_logging(verbose=True)
            assert mock_logger.add.call_args[1]["level"] == "DEBUG"

    def test_log_level_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        with patch("localsocket.__main__.logger") as mock_logger, patch("localsocket.__main__._intercept_logging"):
            setup_logging()
            assert mock_logger.add.call_args[1]["level"] == "WARNING"

    def test_format_includes_time_and_level(self):
        with patch("localsocket.__main__.logger") as mock_logger, patch("localsocket.__main__._intercept_logging"):
            setup_logging()
            fmt = mock_logger.add.call_args[1]["format"]
            assert "{time:" in fmt
            assert "{level:" in fmt
            assert "{message}" in fmt


# ---------------------------------------------------------------------------
# load_events
# ---------------------------------------------------------------------------


class TestLoadEvents:
    def test_list_of_events(self, tmp_path: Path):
        path = tmp_path / "events.yaml"
        path.write_text("- event: login\n  payload: {u: 1}\n- fetch\n")
        assert load_events(path) == [("login", {"u": 1}), ("fetch", None)]

    def test_events_key(self, tmp_path: Path):
        path = tmp_path / "events.yaml"
        path.write_text("events:\n  - event: a\n    payload: 1\n")
        assert load_events(path) == [("a", 1)]

    def test_not_a_list(self, tmp_path: Path):
        path = tmp_path / "events.yaml"
        path.write_text("event: a\n")
        with pytest.raises(LocalSocketConfigurationError):
            load_events(path)

    def test_missing_event_name(self, tmp_path: Path):
        path = tmp_path / "events.yaml"
        path.write_text("- payload: 1\n")
        with pytest.raises(LocalSocketConfigurationError):
            load_events(path)


# ---------------------------------------------------------------------------
# register_trains / replay
# ---------------------------------------------------------------------------


class TestReplay:
    def test_register_trains_uses_matching_variant(self):
        # Arrange
        hub = Hub()
        trains = [
            TrainSpec(pattern=["a", "b"], ordered=True),
            TrainSpec(pattern=["a", "b"], once=True),
            TrainSpec(pattern=["c"]),
        ]

        # Act
        registered = register_trains(hub, trains)

        # Assert
        listeners = {key: hub.get_listener(key) for key in registered}
        kinds = sorted((lst.mode, getattr(lst, "ordering", "")) for lst in listeners.values())
        assert kinds == [("once", "loose"), ("persistent", ""), ("persistent", "strict")]

    def test_replay_fires_matching_trains(self):
        # Arrange
        hub = Hub()
        registered = register_trains(hub, [TrainSpec(pattern=["login", "fetch"], ordered=True)])
        key = next(iter(registered))

        # Act
        with patch("localsocket.__main__.logger") as mock_logger:
            replay(hub, [("login", {"u": 1}), ("fetch", {"d": 2})])

        # Assert
        assert hub.get_listener(key).invocation_count == 1
        mock_logger.info.assert_called_once_with("Matched {}: {}", "login fetch", {"login": {"u": 1}, "fetch": {"d": 2}})


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


class TestMain:
    def test_main_replays_events(self, tmp_path: Path):
        # Arrange
        config = tmp_path / "localsocket.yaml"
        config.write_text("name: replay\ntrains:\n  - pattern: [a, b]\n    ordered: true\n")
        events = tmp_path / "events.yaml"
        events.write_text("- a\n- b\n")

        # Act
        with patch("localsocket.__main__.setup_logging"), patch("localsocket.__main__.logger") as mock_logger:
            code = main(["--config", str(config), "--events", str(events)])

        # Assert
        assert code == 0
        messages = [c.args[0] for c in mock_logger.info.call_args_list]
        assert "Matched {}: {}" in messages

    def test_main_invalid_config_returns_1(self, tmp_path: Path):
        config = tmp_path / "localsocket.yaml"
        config.write_text("max_listeners: 0\n")
        events = tmp_path / "events.yaml"
        events.write_text("- a\n")
        with patch("localsocket.__main__.setup_logging"), patch("localsocket.__main__.logger") as mock_logger:
            code = main(["--config", str(config), "--events", str(events)])
        assert code == 1
        mock_logger.error.assert_called_once()

    def test_main_missing_events_file_returns_1(self, tmp_path: Path):
        config = tmp_path / "localsocket.yaml"
        config.write_text("name: replay\n")
        with patch("localsocket.__main__.setup_logging"), patch("localsocket.__main__.logger"):
            code = main(["--config", str(config), "--events", str(tmp_path / "missing.yaml")])
        assert code == 1

    def test_main_logs_payload_braces_verbatim(self, tmp_path: Path, capsys):
        # Arrange
        config = tmp_path / "localsocket.yaml"
        config.write_text("trains:\n  - pattern: [login, fetch]\n    ordered: true\n")
        events = tmp_path / "events.yaml"
        events.write_text("- event: login\n  payload: {u: 1}\n- event: fetch\n  payload: {d: 2}\n")

        # Act
        try:
            with patch("localsocket.__main__._intercept_logging"):
                code = main(["--config", str(config), "--events", str(events)])
            err = capsys.readouterr().err
        finally:
            logger.remove()

        # Assert
        assert code == 0
        assert "Matched login fetch: {'login': {'u': 1}, 'fetch': {'d': 2}}" in err
        assert "{{" not in err

    def test_main_propagated_listener_error_returns_1(self, tmp_path: Path):
        # Arrange
        config = tmp_path / "localsocket.yaml"
        config.write_text("propagate_errors: true\n")
        events = tmp_path / "events.yaml"
        events.write_text("- a\n")

        def failing_callback(payload):
            raise RuntimeError("listener failed")

        def register_failing(hub, trains):
            hub.register("a", failing_callback)
            return {}

        # Act
        with (
            patch("localsocket.__main__.setup_logging"),
            patch("localsocket.__main__.register_trains", side_effect=register_failing),
            patch("localsocket.__main__.logger") as mock_logger,
        ):
            code = main(["--config", str(config), "--events", str(events)])

        # Assert
        assert code == 1
        mock_logger.exception.assert_called_once()
