"""Tests for settings loading."""

from __future__ import annotations

import pytest

from concept_mapper.config import LAYOUT_ALGORITHMS, ConceptMapperSettings, load_settings


def test_defaults():
    settings = load_settings()

    assert settings == ConceptMapperSettings()
    assert settings.primary_algorithm == "spring"
    assert settings.grid_spacing == 200
    assert settings.horizontal_stretch_factor == 1.25
    assert settings.best_layout_selection
    assert not settings.multiple_layout_algorithms


def test_search_iteration_counts():
    assert {name: cfg.iterations for name, cfg in LAYOUT_ALGORITHMS.items()} == {
        "spring": 20,
        "kamada-kawai": 30,
        "layered": 1,
    }


def test_yaml_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("colored_edges: false\nprimary_algorithm: layered\ngrid_spacing: 100\n")

    settings = load_settings(path)

    assert not settings.colored_edges
    assert settings.primary_algorithm == "layered"
    assert settings.grid_spacing == 100


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text("multiple_layout_algorithms: false\n")
    monkeypatch.setenv("CONCEPT_MAPPER_MULTIPLE_LAYOUT_ALGORITHMS", "true")
    monkeypatch.setenv("CONCEPT_MAPPER_GRID_SPACING", "0")

    settings = load_settings(path)

    assert settings.multiple_layout_algorithms
    assert settings.grid_spacing == 0


def test_settings_file_must_be_a_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_settings(path)
