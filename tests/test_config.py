"""Tests for environment-driven app settings."""

from __future__ import annotations

from reasonsketch.config import AppConfig, ForceConfig


def test_defaults_when_environment_is_empty() -> None:
    config = AppConfig.from_env({})

    assert config == AppConfig()
    assert config.analysis_path is None


def test_environment_overrides() -> None:
    config = AppConfig.from_env(
        {
            "REASONSKETCH_ANALYSIS_PATH": "/tmp/analysis.json",
            "REASONSKETCH_WIDTH": "1024",
            "REASONSKETCH_HEIGHT": "768",
            "REASONSKETCH_TICKS_PER_FRAME": "5",
            "REASONSKETCH_LOG_LEVEL": "debug",
        }
    )

    assert config.analysis_path == "/tmp/analysis.json"
    assert (config.width, config.height) == (1024, 768)
    assert config.ticks_per_frame == 5
    assert config.log_level == "DEBUG"


def test_invalid_numbers_fall_back_to_defaults(caplog) -> None:
    config = AppConfig.from_env({"REASONSKETCH_WIDTH": "wide", "REASONSKETCH_HEIGHT": "-5"})

    assert (config.width, config.height) == (800, 600)
    assert "REASONSKETCH_WIDTH" in caplog.text
    assert "REASONSKETCH_HEIGHT" in caplog.text


def test_alpha_decay_reaches_minimum_in_about_300_steps() -> None:
    config = ForceConfig()

    assert abs((1 - config.alpha_decay) ** 300 - config.alpha_min) < 1e-9
