"""Runtime configuration for wifiverify."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path

from wifiverify.clustering import MAX_WIFI_RADIUS
from wifiverify.combine import ACCURACY_WEIGHT
from wifiverify.fix import MIN_SIGNAL_LEVEL


@dataclass
class VerifierConfig:
    # Trust policy
    trust_window: float = 24 * 60 * 60.0  # seconds

    # Clustering
    max_radius: float = MAX_WIFI_RADIUS  # meters

    # Combination
    accuracy_weight: float = ACCURACY_WEIGHT
    min_signal_level: int = MIN_SIGNAL_LEVEL

    # Paths
    data_dir: Path = field(default_factory=lambda: Path.home() / ".wifiverify")
    store_file: str = "verified.json"

    @property
    def trust_window_ms(self) -> int:
        return int(self.trust_window * 1000)

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_file


# Properties such as store_path are derived and never overridden.
_FIELD_NAMES = frozenset(f.name for f in fields(VerifierConfig))


def load_config_file(path: Path) -> dict:
    """Load config overrides from a TOML file. Returns empty dict if not found."""
    if not path.exists():
        return {}
    import tomllib
    return tomllib.loads(path.read_text())


def apply_overrides(config: VerifierConfig, overrides: dict) -> VerifierConfig:
    """Apply dict overrides (from TOML or CLI) onto a config."""
    for key, value in overrides.items():
        if key == "trust_window":
            if isinstance(value, str):
                config.trust_window = parse_duration(value)
            elif isinstance(value, int | float):
                config.trust_window = float(value)
            else:
                raise ValueError(f"invalid trust_window: {value!r}")
        elif key in ("max_radius", "accuracy_weight"):
            if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
                raise ValueError(f"invalid {key}: {value!r}")
            setattr(config, key, float(value))
        elif key == "min_signal_level":
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise ValueError(f"invalid min_signal_level: {value!r}")
            config.min_signal_level = int(value)
        elif key in ("data_dir", "store_file"):
            if not isinstance(value, str) or not value:
                raise ValueError(f"invalid {key}: {value!r}")
            if key == "data_dir":
                config.data_dir = Path(value).expanduser()
            else:
                config.store_file = value
        elif key in _FIELD_NAMES:
            setattr(config, key, value)
    return config


def parse_duration(s: str) -> float:
    """Parse a duration string like '24h', '90m' or '30s' into seconds."""
    s = s.lower().strip()
    try:
        if s.endswith("d"):
            return float(s[:-1]) * 86400
        if s.endswith("h"):
            return float(s[:-1]) * 3600
        if s.endswith("m"):
            return float(s[:-1]) * 60
        if s.endswith("s"):
            return float(s[:-1])
        return float(s)
    except ValueError:
        raise ValueError(f"invalid duration: {s!r}") from None
