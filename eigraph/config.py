"""Explorer configuration: defaults, TOML/YAML file loading, flag overrides."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .models import COLOR_SCHEMES, EDGE_TYPES, LAYOUT_TYPES, FilterState, LayoutSettings, SurfaceSize


class ConfigError(ValueError):
    pass


@dataclass
class ExplorerConfig:
    width: float = 1000.0
    height: float = 700.0
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    color_scheme: str = "type"
    show_legend: bool = True
    filters: FilterState = field(default_factory=FilterState)
    max_ticks: int = 300

    @property
    def size(self) -> SurfaceSize:
        return SurfaceSize(self.width, self.height)

    def with_overrides(self, **overrides: Any) -> "ExplorerConfig":
        """Copy with CLI flag values applied; None means "not given"."""
        cfg = replace(self, layout=replace(self.layout), filters=replace(self.filters))
        for key, value in overrides.items():
            if value is None:
                continue
            if key in ("width", "height"):
                setattr(cfg, key, _positive(key, value))
            elif key == "color_scheme":
                cfg.color_scheme = _choice(key, value, COLOR_SCHEMES)
            elif key == "show_legend":
                cfg.show_legend = bool(value)
            elif key == "max_ticks":
                cfg.max_ticks = _positive_int(key, value)
            elif key == "layout":
                cfg.layout.type = _choice(key, value, LAYOUT_TYPES)
            elif key in ("link_distance", "charge_strength", "velocity_decay", "alpha_decay"):
                setattr(cfg.layout, key, float(value))
            elif key in ("node_types", "link_types"):
                setattr(cfg.filters, key, set(value))
            elif key in ("min_link_strength", "max_link_strength"):
                setattr(cfg.filters, key, _unit(key, value))
            elif key == "search_query":
                cfg.filters.search_query = str(value)
            elif key == "show_labels":
                cfg.filters.show_labels = bool(value)
            else:
                raise ConfigError(f"unknown option: {key}")
        _check_strength_range(cfg.filters)
        return cfg


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _positive(key: str, value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number") from None
    if v <= 0:
        raise ConfigError(f"{key} must be positive")
    return v


def _positive_int(key: str, value: Any) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer") from None
    if v <= 0:
        raise ConfigError(f"{key} must be positive")
    return v


def _number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number") from None


def _unit(key: str, value: Any) -> float:
    v = _number(key, value)
    if not 0.0 <= v <= 1.0:
        raise ConfigError(f"{key} must be within [0, 1]")
    return v


def _choice(key: str, value: Any, allowed: tuple[str, ...]) -> str:
    v = str(value).strip().lower()
    if v not in allowed:
        raise ConfigError(f"{key} must be one of: {', '.join(allowed)}")
    return v


def _str_set(key: str, value: Any) -> set[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        raise ConfigError(f"{key} must be a list of strings")
    return {str(v).strip() for v in value if str(v).strip()}


def _check_strength_range(filters: FilterState) -> None:
    if filters.min_link_strength > filters.max_link_strength:
        raise ConfigError("min_link_strength must not exceed max_link_strength")


def config_from_dict(data: dict[str, Any]) -> ExplorerConfig:
    """Build a config from `{view, layout, filters}` sections; unknown keys are ignored."""
    cfg = ExplorerConfig()

    view = _coerce_dict(data.get("view"))
    if "width" in view:
        cfg.width = _positive("view.width", view["width"])
    if "height" in view:
        cfg.height = _positive("view.height", view["height"])
    if "color_scheme" in view:
        cfg.color_scheme = _choice("view.color_scheme", view["color_scheme"], COLOR_SCHEMES)
    if "show_legend" in view:
        cfg.show_legend = bool(view["show_legend"])
    if "max_ticks" in view:
        cfg.max_ticks = _positive_int("view.max_ticks", view["max_ticks"])

    layout = _coerce_dict(data.get("layout"))
    layout_type = _choice("layout.type", layout.get("type", "force"), LAYOUT_TYPES)
    cfg.layout = LayoutSettings(type=layout_type)
    if "link_distance" in layout:
        cfg.layout.link_distance = _positive("layout.link_distance", layout["link_distance"])
    if "charge_strength" in layout:
        cfg.layout.charge_strength = _number("layout.charge_strength", layout["charge_strength"])
    if "velocity_decay" in layout:
        cfg.layout.velocity_decay = _unit("layout.velocity_decay", layout["velocity_decay"])
    if "alpha_decay" in layout:
        cfg.layout.alpha_decay = _unit("layout.alpha_decay", layout["alpha_decay"])

    filters = _coerce_dict(data.get("filters"))
    if "node_types" in filters:
        cfg.filters.node_types = _str_set("filters.node_types", filters["node_types"])
    if "link_types" in filters:
        link_types = _str_set("filters.link_types", filters["link_types"])
        unknown = sorted(link_types - set(EDGE_TYPES))
        if unknown:
            raise ConfigError(f"filters.link_types has unknown types: {', '.join(unknown)}")
        cfg.filters.link_types = link_types
    if "min_link_strength" in filters:
        cfg.filters.min_link_strength = _unit("filters.min_link_strength", filters["min_link_strength"])
    if "max_link_strength" in filters:
        cfg.filters.max_link_strength = _unit("filters.max_link_strength", filters["max_link_strength"])
    if "search_query" in filters:
        cfg.filters.search_query = str(filters["search_query"] or "")
    if "show_labels" in filters:
        cfg.filters.show_labels = bool(filters["show_labels"])
    _check_strength_range(cfg.filters)

    return cfg


def load_config(path: Path) -> ExplorerConfig:
    """Load TOML (`.toml`) or YAML (`.yaml`/`.yml`) explorer settings."""
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix == ".toml":
        import tomllib

        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {path}: {e}") from e
    elif suffix in (".yaml", ".yml"):
        import yaml

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
    else:
        raise ConfigError(f"unsupported config format: {path.suffix or '(none)'} (use .toml or .yaml)")

    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return config_from_dict(data)
