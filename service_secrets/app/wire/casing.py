"""
Key casing between the Secrets Manager JSON contract and internal names.

The wire uses PascalCase (``SecretIdList``); the proxy works with snake_case
(``secret_id_list``). ``ARN`` is an acronym on the wire and ``arn`` inside.
"""

import re
from typing import Any

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# Internal word -> wire spelling, for words that are not simply capitalised.
ACRONYMS = {
    "arn": "ARN",
}

# Fields whose value is a map keyed by data (version ids), not by field names.
OPAQUE_MAPS = frozenset({
    "version_ids_to_stages",
    "secret_versions_to_stages",
})


def underscore(name: str) -> str:
    """``SecretIdList`` -> ``secret_id_list``; ``ARN`` -> ``arn``."""
    return _WORD_BOUNDARY.sub("_", name).lower()


def pascalize(name: str) -> str:
    """``secret_id_list`` -> ``SecretIdList``; ``arn`` -> ``ARN``."""
    return "".join(ACRONYMS.get(word, word.capitalize()) for word in name.split("_"))


def deep_underscore_keys(value: Any) -> Any:
    """Recursively snake_case every mapping key."""
    if isinstance(value, dict):
        converted = {}
        for key, item in value.items():
            name = underscore(str(key))
            converted[name] = item if name in OPAQUE_MAPS else deep_underscore_keys(item)
        return converted
    if isinstance(value, list):
        return [deep_underscore_keys(item) for item in value]
    return value


def deep_pascalize_keys(value: Any) -> Any:
    """Recursively PascalCase every mapping key."""
    if isinstance(value, dict):
        return {
            pascalize(str(key)): item if key in OPAQUE_MAPS else deep_pascalize_keys(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [deep_pascalize_keys(item) for item in value]
    return value
