# Fourier Board configuration
# Default values, JSON persistence

import json
from dataclasses import asdict, dataclass, field, is_dataclass
from pathlib import Path

from logging_utils import log_event

CURRENT_CONFIG_VERSION = 1


@dataclass
class CanvasConfig:
    """Drawing surface and epicycle chain placement"""
    width: int = 1920
    height: int = 1080
    x_chain_offset: float = 100.0     # y coordinate where the x-axis chain is anchored
    y_chain_offset: float = 200.0     # x coordinate where the y-axis chain is anchored


@dataclass
class AnimationConfig:
    tick_hz: int = 60                 # External clock rate driving the state machine
    show_points: bool = False
    show_circles: bool = False


@dataclass
class PrerenderConfig:
    enabled: bool = True
    batch_size: int = 10              # Frames dispatched (and joined) per batch
    max_workers: int = 10


@dataclass
class ExportConfig:
    fps: int = 60
    width: int = 0                    # 0 = canvas width
    show_points: bool = False
    show_circles: bool = True


@dataclass
class Config:
    """Master configuration"""
    version: int = CURRENT_CONFIG_VERSION
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    prerender: PrerenderConfig = field(default_factory=PrerenderConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_level: str = "INFO"


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)
        if is_dataclass(current):
            if isinstance(value, dict):
                apply_dict_to_dataclass(current, value)
            continue

        setattr(target, key, value)


def default_config_file() -> Path:
    return Path.home() / '.fourier_board' / 'config.json'


def save_config(config: Config, path=None) -> bool:
    """Save config to JSON file."""
    config_file = Path(path) if path is not None else default_config_file()
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(asdict(config), f, indent=2)
    except OSError as e:
        log_event("warning", "Config", "Failed to save", path=config_file, error=e)
        return False
    log_event("info", "Config", "Saved", path=config_file)
    return True


def load_config(path=None) -> Config:
    """Load config from JSON file, returns defaults if missing or unreadable."""
    config_file = Path(path) if path is not None else default_config_file()
    if not config_file.exists():
        log_event("info", "Config", "No saved config found, using defaults")
        return Config()

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        log_event("warning", "Config", "Failed to load, using defaults", path=config_file, error=e)
        return Config()

    config = Config()
    apply_dict_to_dataclass(config, data)
    config.version = CURRENT_CONFIG_VERSION
    log_event("info", "Config", "Loaded", path=config_file)
    return config
