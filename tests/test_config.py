from pathlib import Path

import pytest

from eigraph.config import ConfigError, ExplorerConfig, config_from_dict, load_config


def test_defaults() -> None:
    cfg = ExplorerConfig()
    assert (cfg.width, cfg.height) == (1000.0, 700.0)
    assert cfg.layout.type == "force"
    assert cfg.layout.link_distance == 100.0
    assert cfg.layout.charge_strength == -300.0
    assert cfg.color_scheme == "type"
    assert cfg.filters.min_link_strength == 0.0
    assert cfg.filters.max_link_strength == 1.0


def test_load_toml(tmp_path: Path) -> None:
    path = tmp_path / "eigraph.toml"
    path.write_text(
        "\n".join(
            [
                "[view]",
                "width = 800",
                'color_scheme = "risk"',
                "",
                "[layout]",
                'type = "hierarchical"',
                "charge_strength = -150",
                "",
                "[filters]",
                'node_types = ["enterprise"]',
                "min_link_strength = 0.2",
                "unknown_key = 1",
            ]
        ),
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.width == 800
    assert cfg.color_scheme == "risk"
    assert cfg.layout.type == "hierarchical"
    assert cfg.layout.charge_strength == -150
    assert cfg.filters.node_types == {"enterprise"}
    assert cfg.filters.min_link_strength == 0.2


def test_load_yaml(tmp_path: Path) -> None:
    path = tmp_path / "eigraph.yaml"
    path.write_text(
        "view:\n  show_legend: false\nlayout:\n  type: grid\nfilters:\n  link_types: [supply, ownership]\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.show_legend is False
    assert cfg.layout.type == "grid"
    assert cfg.filters.link_types == {"supply", "ownership"}


@pytest.mark.parametrize(
    "data",
    [
        {"layout": {"type": "radial"}},
        {"view": {"color_scheme": "rainbow"}},
        {"view": {"width": -1}},
        {"filters": {"min_link_strength": 1.5}},
        {"filters": {"min_link_strength": 0.8, "max_link_strength": 0.2}},
        {"filters": {"link_types": ["loan"]}},
    ],
)
def test_invalid_values_raise(data: dict) -> None:
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_bad_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.toml")

    ini = tmp_path / "eigraph.ini"
    ini.write_text("[view]\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(ini)

    broken = tmp_path / "broken.toml"
    broken.write_text("[view\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(broken)


def test_overrides_copy_and_skip_none() -> None:
    base = ExplorerConfig()
    cfg = base.with_overrides(layout="circular", node_types=("person",), search_query=None, width=640)
    assert cfg.layout.type == "circular"
    assert cfg.filters.node_types == {"person"}
    assert cfg.width == 640
    assert base.layout.type == "force"
    assert "enterprise" in base.filters.node_types

    with pytest.raises(ConfigError):
        base.with_overrides(min_link_strength=0.9, max_link_strength=0.1)
