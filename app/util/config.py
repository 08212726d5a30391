from __future__ import annotations

import tomllib
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, TypedDict

from chip8.logger import log as _log
from resources import config_file


class GeneralConfig(TypedDict):
    ips: int
    timer_hz: int
    scale: int
    legacy_mode: bool
    seed: int


class ColorsConfig(TypedDict):
    on: list[int]
    off: list[int]


class Config(TypedDict):
    general: GeneralConfig
    keyboard: dict[str, str]
    colors: ColorsConfig


# Hex key -> pygame key name, laid out on the usual 4x4 block:
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
DEFAULT_CONFIG: Config = {
    "general": {"ips": 700, "timer_hz": 60, "scale": 10, "legacy_mode": False, "seed": -1},
    "keyboard": {
        "1": "1", "2": "2", "3": "3", "C": "4",
        "4": "q", "5": "w", "6": "e", "D": "r",
        "7": "a", "8": "s", "9": "d", "E": "f",
        "A": "z", "0": "x", "B": "c", "F": "v",
    },
    "colors": {"on": [255, 255, 255], "off": [0, 0, 0]},
}


def _deep_merge(
    target: MutableMapping[str, Any],
    overrides: Mapping[str, Any],
) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def _validate_color(name: str, value: Any) -> None:
    if not (isinstance(value, list) and len(value) == 3 and all(isinstance(c, int) and 0 <= c <= 255 for c in value)):
        raise ValueError(f"colors.{name} must be a list of three integers in 0..255")


def _validate_config(cfg: Config) -> None:
    general = cfg["general"]
    for name in ("ips", "timer_hz", "scale"):
        if not isinstance(general[name], int) or isinstance(general[name], bool) or general[name] <= 0:
            raise ValueError(f"general.{name} must be a positive integer")

    if not isinstance(general["legacy_mode"], bool):
        raise ValueError("general.legacy_mode must be a boolean")

    if not isinstance(general["seed"], int):
        raise ValueError("general.seed must be an integer (-1 for a random seed)")

    for key, binding in cfg["keyboard"].items():
        if len(key) != 1 or key.upper() not in "0123456789ABCDEF":
            raise ValueError(f"keyboard.{key} is not a hexadecimal key")
        if not isinstance(binding, str) or not binding:
            raise ValueError(f"keyboard.{key} must be a key name")

    _validate_color("on", cfg["colors"]["on"])
    _validate_color("off", cfg["colors"]["off"])


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load config.toml on top of DEFAULT_CONFIG.

    A missing file yields the defaults; a malformed one is logged and the
    defaults are used instead.
    """
    path = path or config_file
    if not path.exists():
        return deepcopy(DEFAULT_CONFIG)

    config = deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)

        if isinstance(data.get("keyboard"), dict):
            data["keyboard"] = {str(key).upper(): binding for key, binding in data["keyboard"].items()}

        _deep_merge(config, data)
        _validate_config(config)

    except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
        _log.error(f"Failed to load config: {e}", exc_info=(type(e), e, e.__traceback__))
        return deepcopy(DEFAULT_CONFIG)

    return config
