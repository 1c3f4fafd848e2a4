"""${ENV_VAR} and ${ENV_VAR:-default} interpolation over raw YAML data."""

import os
import re
from collections.abc import Callable, Iterator

_REFERENCE = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}"
)

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def collect_missing_vars(data: RawValue) -> list[str]:
    """Names of referenced variables that are unset and carry no default.

    Names are unique and listed in order of first reference, so a single
    error can report every missing variable at once.
    """
    missing = dict.fromkeys(
        match.group("name")
        for text in _strings(data)
        for match in _REFERENCE.finditer(text)
        if _resolve(match) is None
    )
    return list(missing)


def interpolate(data: RawValue) -> RawValue:
    """Return a copy of data with every reference replaced.

    Run ``collect_missing_vars`` first; an unresolvable reference raises
    KeyError here.
    """
    return _map_strings(data, lambda text: _REFERENCE.sub(_substitute, text))


def _resolve(match: re.Match[str]) -> str | None:
    return os.environ.get(match.group("name"), match.group("default"))


def _substitute(match: re.Match[str]) -> str:
    value = _resolve(match)
    if value is None:
        raise KeyError(match.group("name"))
    return value


def _strings(data: RawValue) -> Iterator[str]:
    if isinstance(data, str):
        yield data
    elif isinstance(data, list):
        for item in data:
            yield from _strings(item)
    elif isinstance(data, dict):
        for value in data.values():
            yield from _strings(value)


def _map_strings(data: RawValue, transform: Callable[[str], str]) -> RawValue:
    if isinstance(data, str):
        return transform(data)
    if isinstance(data, list):
        return [_map_strings(item, transform) for item in data]
    if isinstance(data, dict):
        return {key: _map_strings(value, transform) for key, value in data.items()}
    return data
