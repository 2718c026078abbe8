import random
from fractions import Fraction
from pathlib import Path
from typing import Type, TypeVar, get_type_hints

import yaml

from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.pitch_utils.types import SettingsBase, TimeStamp


def get_attribute_type(dataclass_class: Type[SettingsBase], attr_name: str):
    type_hints = get_type_hints(dataclass_class)
    if attr_name not in type_hints:
        raise InvalidInputError(
            f"{attr_name=} not among the fields of {dataclass_class.__name__}"
        )
    return type_hints[attr_name]


def get_random_val(
    expected_type: Type, min_val, max_val, rng: random.Random | None = None
):
    if rng is None:
        rng = random.Random()
    if expected_type in (TimeStamp, Fraction, float):
        value = min_val + rng.random() * (max_val - min_val)
        return expected_type(value)
    if expected_type is int:
        return rng.randint(min_val, max_val)

    raise InvalidInputError(f"{expected_type=} not supported by get_random_val()")


S = TypeVar("S", bound=SettingsBase)


def _read_yaml(yaml_path: str | Path) -> dict:
    with open(yaml_path, "r") as yaml_file:
        config_dict = yaml.safe_load(yaml_file)
    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise InvalidInputError(f"{yaml_path} doesn't contain a mapping of settings")
    return config_dict


def _make_settings(settings_class: Type[S], config_dict: dict) -> S:
    try:
        return settings_class(**config_dict)
    except TypeError as exc:
        raise InvalidInputError(
            f"Bad settings for {settings_class.__name__}: {exc}"
        ) from exc


def _is_range_key(key) -> bool:
    return isinstance(key, str) and key.startswith(("MIN_", "MAX_"))


def load_config_from_yaml_basic(
    settings_class: Type[S], yaml_path: str | Path | None, **overrides
) -> S:
    # No randomization
    config_dict = {} if yaml_path is None else _read_yaml(yaml_path)
    config_dict.update(overrides)
    return _make_settings(settings_class, config_dict)


def load_config_from_yaml(
    settings_class: Type[S],
    yaml_path: str | Path | None,
    rng: random.Random | None = None,
    **overrides,
) -> S:
    """Like load_config_from_yaml_basic(), except that a pair of keys
    `MIN_<field>` and `MAX_<field>` sets `<field>` to a random value between
    them (inclusive for ints).
    """
    if yaml_path is None:
        return load_config_from_yaml_basic(settings_class, None, **overrides)
    config_dict = _read_yaml(yaml_path)
    if not any(_is_range_key(key) for key in config_dict):
        return load_config_from_yaml_basic(settings_class, yaml_path, **overrides)

    max_range_keys = {}
    min_range_keys = {}
    other_keys = {}

    for key, val in config_dict.items():
        if key.startswith("MAX_"):
            max_range_keys[key] = val
        elif key.startswith("MIN_"):
            min_range_keys[key] = val
        else:
            other_keys[key] = val

    for min_key in min_range_keys:
        base_key = min_key[4:]  # Remove "MIN_"
        if base_key in other_keys:
            raise InvalidInputError(f"Found {min_key=} but also {base_key=}")
        max_key = "MAX_" + base_key
        if max_key not in max_range_keys:
            raise InvalidInputError(f"Found {min_key=} but missing {max_key=}")

    for max_key, max_val in max_range_keys.items():
        base_key = max_key[4:]  # Remove "MAX_"
        if base_key in other_keys:
            raise InvalidInputError(f"Found {max_key=} but also {base_key=}")
        min_key = "MIN_" + base_key
        if min_key not in min_range_keys:
            raise InvalidInputError(f"Found {max_key=} but missing {min_key=}")

        min_val = min_range_keys[min_key]
        expected_type = get_attribute_type(settings_class, base_key)
        other_keys[base_key] = get_random_val(expected_type, min_val, max_val, rng)

    other_keys.update(overrides)
    return _make_settings(settings_class, other_keys)
