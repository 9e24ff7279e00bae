"""Tests for the scan configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from platform_scan.core.config import ConfigError, ScanConfig, load_config


class TestPackagesMap:
    def test_packages_map_to_themselves_and_aliases_to_framework(self) -> None:
        config = ScanConfig(packages=["foo"], frameworks={"bar": ["baz"]})
        aliases = config.packages_map()
        assert aliases["baz"] == "bar"
        assert aliases["foo"] == "foo"

    def test_framework_alias_wins_over_package_of_same_name(self) -> None:
        config = ScanConfig(packages=["drupal/core"], frameworks={"drupal": ["drupal/core", "drupal/drupal"]})
        assert config.packages_map() == {"drupal/core": "drupal", "drupal/drupal": "drupal"}

    def test_empty_config_maps_nothing(self) -> None:
        assert ScanConfig().packages_map() == {}


class TestReportCols:
    def test_frameworks_then_packages_in_configuration_order(self) -> None:
        config = ScanConfig(
            frameworks={"symfony": ["symfony/symfony"], "drupal": ["drupal/core"]},
            packages=["guzzlehttp/guzzle", "monolog/monolog"],
        )
        assert config.report_cols() == ["symfony", "drupal", "guzzlehttp/guzzle", "monolog/monolog"]

    def test_name_listed_twice_gets_one_column(self) -> None:
        config = ScanConfig(frameworks={"drupal": ["drupal/core"]}, packages=["guzzlehttp/guzzle", "drupal"])
        assert config.report_cols() == ["drupal", "guzzlehttp/guzzle"]


class TestLoadConfig:
    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "frameworks:\n  drupal:\n    - drupal/core\n    - drupal/drupal\npackages:\n  - guzzlehttp/guzzle\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.frameworks == {"drupal": ["drupal/core", "drupal/drupal"]}
        assert config.packages == ["guzzlehttp/guzzle"]

    def test_empty_file_is_empty_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == ScanConfig()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_malformed_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("packages: 12\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="malformed"):
            load_config(path)

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("packages: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_config(path)
