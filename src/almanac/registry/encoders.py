"""package name to registry path encoders."""
from typing import Callable, Dict
from urllib.parse import quote

from ..domain.errors import ConfigError

PathEncoder = Callable[[str], str]


def encode_npm_name(name: str) -> str:
    """
    encode a package name the way the npm registry expects it.

    scoped packages keep their leading '@' and have the scope separator
    escaped, so '@types/node' becomes '@types%2Fnode'.
    """
    if name.startswith("@") and "/" in name:
        scope, _, bare = name[1:].partition("/")
        return f"@{quote(scope, safe='')}%2F{quote(bare, safe='')}"
    return quote(name, safe="")


def encode_plain_name(name: str) -> str:
    return quote(name, safe="")


ENCODERS: Dict[str, PathEncoder] = {
    "npm": encode_npm_name,
    "plain": encode_plain_name,
}


def get_encoder(name: str) -> PathEncoder:
    try:
        return ENCODERS[name]
    except KeyError:
        raise ConfigError(f"unknown encoder '{name}', expected one of: {', '.join(sorted(ENCODERS))}")
