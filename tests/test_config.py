"""Tests for configuration module"""
import os
import tempfile
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config, parse_duration


class TestParseDuration:
    """Test duration string parsing"""

    @pytest.mark.parametrize("text,expected", [
        ("5s", 5.0),
        ("250ms", 0.25),
        ("1m30s", 90.0),
        ("2h", 7200.0),
        ("1.5s", 1.5),
        ("3", 3.0),
        ("100us", 0.0001),
    ])
    def test_valid_durations(self, text, expected):
        assert parse_duration(text) == pytest.approx(expected)

    def test_numbers_are_seconds(self):
        assert parse_duration(7) == 7.0
        assert parse_duration(0.5) == 0.5

    @pytest.mark.parametrize("text", ["", "abc", "5x", "s5", "5s garbage", "-5s", "nan", "inf", "-inf", "1e400"])
    def test_invalid_durations(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_numbers(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self):
        """Test default configuration values"""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        assert config.timeout == "5s"
        assert config.timeout_seconds == 5.0
        assert config.collection_interval == 10
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "TIMEOUT": "750ms",
            "COLLECTION_INTERVAL": "60",
            "LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.timeout_seconds == pytest.approx(0.75)
            assert config.collection_interval == 60
            assert config.log_level == "DEBUG"

    def test_numeric_timeout(self):
        """Test numeric timeout is treated as seconds"""
        config = Config(timeout=2)
        assert config.timeout_seconds == 2.0

    def test_validation_timeout(self):
        """Test invalid timeouts are rejected"""
        for value in ("nan", "inf", "NaN"):
            with patch.dict(os.environ, {"TIMEOUT": value}):
                with pytest.raises(ValidationError):
                    Config()

        with patch.dict(os.environ, {"TIMEOUT": "soon"}):
            with pytest.raises(ValidationError):
                Config()

        with patch.dict(os.environ, {"TIMEOUT": "0s"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_collection_interval(self):
        """Test validation of collection interval"""
        with patch.dict(os.environ, {"COLLECTION_INTERVAL": "0"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_log_level(self):
        """Test unknown log levels are rejected"""
        with patch.dict(os.environ, {"LOG_LEVEL": "verbose"}):
            with pytest.raises(ValidationError):
                Config()

    def test_directory_creation(self):
        """Test that parent directories are created for the log file"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "subdir" / "test.log"

            with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
                config = Config()

                assert config.log_file == log_file
                assert config.log_file.parent.exists()
