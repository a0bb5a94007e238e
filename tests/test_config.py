"""Tests for `.teamtrack/config.yaml` loading."""

from __future__ import annotations

from pathlib import Path

from teamtrack.aggregation.paste import PasteSettings
from teamtrack.config import (
    get_kpi_config,
    get_listing_config,
    get_log_level,
    get_paste_settings,
    load_config,
)


def _write_config(project_dir: Path, text: str) -> None:
    state = project_dir / ".teamtrack"
    state.mkdir()
    (state / "config.yaml").write_text(text, encoding="utf-8")


def test_missing_config_is_empty(tmp_path: Path) -> None:
    config, err = load_config(tmp_path)
    assert config == {}
    assert err is None
    assert get_paste_settings(config) == PasteSettings()
    assert get_kpi_config(config) == {"recompute_overdue": False}
    assert get_listing_config(config) == {"page_size": 20}
    assert get_log_level(config) == "INFO"


def test_values_are_read(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "paste:\n  min_text_length: 5\n  min_fragment_length: 2\n"
        "kpi:\n  recompute_overdue: true\n"
        "listing:\n  page_size: 50\n"
        "log_level: debug\n",
    )
    config, err = load_config(tmp_path)
    assert err is None
    assert get_paste_settings(config) == PasteSettings(min_text_length=5, min_fragment_length=2)
    assert get_kpi_config(config) == {"recompute_overdue": True}
    assert get_listing_config(config) == {"page_size": 50}
    assert get_log_level(config) == "DEBUG"


def test_bad_values_fall_back(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "paste: nope\nkpi:\n  recompute_overdue: 'yes'\nlisting:\n  page_size: -3\nlog_level: LOUD\n",
    )
    config, _ = load_config(tmp_path)
    assert get_paste_settings(config) == PasteSettings()
    assert get_kpi_config(config) == {"recompute_overdue": False}
    assert get_listing_config(config) == {"page_size": 20}
    assert get_log_level(config) == "INFO"


def test_unreadable_config_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "paste: [unclosed\n")
    config, err = load_config(tmp_path)
    assert config == {}
    assert err is not None and "YAMLError" in err


def test_non_mapping_config(tmp_path: Path) -> None:
    _write_config(tmp_path, "- just\n- a list\n")
    config, err = load_config(tmp_path)
    assert config == {}
    assert err is not None and "expected object" in err
