"""
Configuration settings for the path geometry engine.
Typed per-mode settings records and the validation boundary that turns
operator input into them.
"""
import math
from typing import Dict, Any, Tuple, Optional
from dataclasses import dataclass, field, fields, replace

from ..modules.materials import MATERIALS, NONE_MATERIAL, normalize_material


MODES = ('road', 'bridge', 'curve')
ALGORITHMS = ('catmullrom', 'bezier')
HEIGHT_MODES = ('auto', 'fixed')


class SettingsError(ValueError):
    """Raised when a setting value is rejected at the validation boundary."""

    def __init__(self, key: str, value: Any, expected: str):
        self.key = key
        self.value = value
        self.expected = expected
        super().__init__(f'Invalid value "{value}" for {key}. Expected: {expected}.')


# Numeric ranges shared by every mode, inclusive on both ends
RANGES: Dict[str, Tuple[float, float]] = {
    'resolution': (0.1, 2.0),
    'width': (1, 32),
    'clearance': (1, 10),
    'fill_below': (0, 20),
    'support_spacing': (3, 50),
    'support_width': (1, 10),
    'support_max_depth': (1, 128),
}

# Material keys that may be switched off with "none"
OPTIONAL_MATERIALS = ('border', 'centerline')


def _attr_name(key: str) -> str:
    """Operator keys use dashes (``support-spacing``), attributes use underscores."""
    return key.strip().lower().replace('-', '_')


def _key_name(attr: str) -> str:
    return attr.replace('_', '-')


def _check_range(attr: str, value):
    low, high = RANGES[attr]
    if not math.isfinite(value) or value < low or value > high:
        kind = 'decimal' if isinstance(low, float) else 'integer'
        raise SettingsError(_key_name(attr), value, f"{kind} {low}-{high}")


def _check_choice(attr: str, value: str, choices: Tuple[str, ...]):
    if value not in choices:
        raise SettingsError(_key_name(attr), value, ' or '.join(choices))


def _check_material(attr: str, value: str):
    if value == NONE_MATERIAL and attr in OPTIONAL_MATERIALS:
        return
    if value not in MATERIALS:
        raise SettingsError(_key_name(attr), value, "a known block material")


class _ModeConfig:
    """Shared validation and (de)serialization for the per-mode records."""

    def __post_init__(self):
        self.validate()

    def validate(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type in (bool, 'bool'):
                if not isinstance(value, bool):
                    raise SettingsError(_key_name(f.name), value, "true or false")
            elif f.name in RANGES:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise SettingsError(_key_name(f.name), value, "a number")
                if isinstance(RANGES[f.name][0], int) and not isinstance(value, int):
                    raise SettingsError(_key_name(f.name), value, "integer")
                _check_range(f.name, value)
            elif f.name == 'algorithm':
                _check_choice(f.name, value, ALGORITHMS)
            elif f.name == 'height_mode':
                _check_choice(f.name, value, HEIGHT_MODES)
            elif f.name.endswith('material') or f.name in OPTIONAL_MATERIALS:
                _check_material(f.name, value)

    @classmethod
    def keys(cls) -> Tuple[str, ...]:
        """Operator-facing keys valid for this mode."""
        return tuple(_key_name(f.name) for f in fields(cls))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]):
        """Create a record from a dictionary of already-typed values."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in config_dict.items():
            attr = _attr_name(key)
            if attr not in known:
                raise SettingsError(key, value, f"one of {', '.join(cls.keys())}")
            if isinstance(value, str) and (attr.endswith('material') or attr in OPTIONAL_MATERIALS):
                value = normalize_material(value)
            values[attr] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {_key_name(f.name): getattr(self, f.name) for f in fields(self)}

    def with_value(self, key: str, value: Any):
        """Return a copy with one setting changed; the copy is validated."""
        return replace(self, **{_attr_name(key): value})


@dataclass(frozen=True)
class CurveConfig(_ModeConfig):
    """Curve preview settings."""
    resolution: float = 0.5
    algorithm: str = 'catmullrom'


@dataclass(frozen=True)
class RoadConfig(_ModeConfig):
    """Settings for the surface (road) generator."""
    width: int = 5
    material: str = 'STONE_BRICKS'
    border: str = 'POLISHED_ANDESITE'
    centerline: str = NONE_MATERIAL
    use_slabs: bool = True
    use_stairs: bool = True
    terrain_adapt: bool = True
    clearance: int = 3
    fill_below: int = 4
    fill_material: str = 'COBBLESTONE'
    resolution: float = 0.5


@dataclass(frozen=True)
class BridgeConfig(_ModeConfig):
    """Settings for the elevated (bridge) generator."""
    width: int = 5
    deck_material: str = 'STONE_BRICK_SLAB'
    railings: bool = True
    railing_material: str = 'STONE_BRICK_WALL'
    supports: bool = True
    support_material: str = 'STONE_BRICKS'
    support_spacing: int = 8
    support_width: int = 3
    support_max_depth: int = 40
    height_mode: str = 'auto'
    ramps: bool = True
    ramp_material: str = 'STONE_BRICK_STAIRS'
    resolution: float = 0.5


@dataclass(frozen=True)
class EngineLimits:
    """Operational ceilings checked by callers before handing off a result."""
    max_points: int = 50
    max_path_length: float = 2000.0
    max_preview_points: int = 5000
    max_blocks: int = 50000
    ramp_scan_depth: int = 40


MODE_CONFIGS = {
    'road': RoadConfig,
    'bridge': BridgeConfig,
    'curve': CurveConfig,
}


@dataclass(frozen=True)
class PathSettings:
    """Main settings record combining every mode plus the engine limits."""
    mode: str = 'road'
    curve: CurveConfig = field(default_factory=CurveConfig)
    road: RoadConfig = field(default_factory=RoadConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    limits: EngineLimits = field(default_factory=EngineLimits)

    def __post_init__(self):
        _check_choice('mode', self.mode, MODES)

    def for_mode(self, mode: Optional[str] = None):
        """Return the record of the given (or active) mode."""
        return getattr(self, mode or self.mode)

    def with_setting(self, key: str, raw: Any, mode: Optional[str] = None) -> 'PathSettings':
        """Parse and apply one operator setting, returning a new PathSettings."""
        mode = mode or self.mode
        value = parse_setting(mode, key, raw)
        updated = self.for_mode(mode).with_value(key, value)
        return replace(self, **{mode: updated})

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'PathSettings':
        """Create a PathSettings from a dictionary."""
        limits = EngineLimits(**{
            _attr_name(k): v for k, v in config_dict.get('limits', {}).items()
        })
        return cls(
            mode=config_dict.get('mode', 'road'),
            curve=CurveConfig.from_dict(config_dict.get('curve', {})),
            road=RoadConfig.from_dict(config_dict.get('road', {})),
            bridge=BridgeConfig.from_dict(config_dict.get('bridge', {})),
            limits=limits,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert PathSettings to a dictionary."""
        return {
            'mode': self.mode,
            'curve': self.curve.to_dict(),
            'road': self.road.to_dict(),
            'bridge': self.bridge.to_dict(),
            'limits': dict(self.limits.__dict__),
        }


def parse_setting(mode: str, key: str, raw: Any):
    """
    Parse a raw operator value for ``key`` in ``mode``.

    Args:
        mode: 'road', 'bridge' or 'curve'
        key: Setting key, dashed or underscored
        raw: Operator input, usually a string

    Returns:
        The typed value

    Raises:
        SettingsError: If the key is unknown for the mode or the value is invalid
    """
    if mode not in MODE_CONFIGS:
        raise SettingsError('mode', mode, ' or '.join(MODES))

    config_cls = MODE_CONFIGS[mode]
    attr = _attr_name(key)
    field_types = {f.name: f.type for f in fields(config_cls)}
    if attr not in field_types:
        raise SettingsError(key, raw, f"one of {', '.join(config_cls.keys())}")

    text = str(raw).strip()
    field_type = field_types[attr]

    if field_type in (bool, 'bool'):
        if isinstance(raw, bool):
            return raw
        if text.lower() in ('true', 'false'):
            return text.lower() == 'true'
        raise SettingsError(_key_name(attr), raw, "true or false")

    if field_type in (int, 'int'):
        if isinstance(raw, bool):
            raise SettingsError(_key_name(attr), raw, "integer")
        try:
            value = int(text)
        except ValueError:
            raise SettingsError(_key_name(attr), raw, "integer")
        _check_range(attr, value)
        return value

    if field_type in (float, 'float'):
        try:
            value = float(text)
        except ValueError:
            raise SettingsError(_key_name(attr), raw, "decimal")
        _check_range(attr, value)
        return value

    if attr == 'algorithm':
        value = text.lower()
        _check_choice(attr, value, ALGORITHMS)
        return value

    if attr == 'height_mode':
        value = text.lower()
        _check_choice(attr, value, HEIGHT_MODES)
        return value

    value = normalize_material(text)
    _check_material(attr, value)
    return value


def create_default_settings(**overrides) -> PathSettings:
    """Create default settings with optional overrides."""
    return PathSettings(**overrides)


def create_preset_settings(preset_name: str, **overrides) -> PathSettings:
    """Create predefined settings presets."""
    presets = {
        'country_lane': {
            'mode': 'road',
            'road': {'width': 3, 'material': 'DIRT_PATH', 'border': 'none',
                     'use_slabs': False, 'use_stairs': False, 'fill_material': 'DIRT'},
        },
        'highway': {
            'mode': 'road',
            'road': {'width': 9, 'material': 'GRAY_CONCRETE', 'border': 'SMOOTH_STONE',
                     'centerline': 'WHITE_CONCRETE', 'clearance': 5, 'resolution': 0.3},
        },
        'wooden_footbridge': {
            'mode': 'bridge',
            'bridge': {'width': 3, 'deck_material': 'OAK_SLAB', 'railing_material': 'OAK_FENCE',
                       'support_material': 'OAK_LOG', 'support_width': 1, 'ramp_material': 'OAK_STAIRS'},
        },
        'stone_viaduct': {
            'mode': 'bridge',
            'bridge': {'width': 7, 'deck_material': 'STONE_BRICKS', 'support_spacing': 12,
                       'support_width': 2, 'support_max_depth': 64},
        },
    }

    if preset_name not in presets:
        raise ValueError(f"Unknown preset: {preset_name}. Available: {list(presets.keys())}")

    known = {f.name for f in fields(PathSettings)}
    preset_config = {key: dict(value) if isinstance(value, dict) else value
                     for key, value in presets[preset_name].items()}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown settings section: {key}. Available: {sorted(known)}")
        # Section overrides merge into the preset's section
        if isinstance(value, dict):
            preset_config.setdefault(key, {}).update(value)
        else:
            preset_config[key] = value

    return PathSettings.from_dict(preset_config)
