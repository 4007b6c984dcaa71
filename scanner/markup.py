"""Crediting script imports that are only used as components in markup."""

import re
from typing import Dict, Iterable, Mapping, Optional, Set

from .parser import TSX, ParsedScript, parse_script


# Element names, PascalCase or kebab-case. A regex is enough here: only tag
# names are needed, not the template grammar.
_TAG = re.compile(r"<([A-Za-z][\w.-]*)")
# <component :is="Foo">, :is="'Foo'", v-bind:is="Foo" and static is="Foo"
_IS_BINDING = re.compile(
    r"""(?:v-bind:is|:is|(?<![\w-])is)\s*=\s*(["'])\s*['"`]?([\w$.-]+)['"`]?\s*\1"""
)
_KEBAB = re.compile(r"-(\w)")


def kebab_to_pascal(tag: str) -> str:
    """Convert ``foo-bar`` to ``FooBar``."""
    camel = _KEBAB.sub(lambda m: m.group(1).upper(), tag)
    return camel[:1].upper() + camel[1:]


def get_template_tags(markup: str) -> Set[str]:
    """Collect element names and dynamic ``:is`` component names from markup."""
    tags: Set[str] = set(_TAG.findall(markup))
    tags.update(match.group(2) for match in _IS_BINDING.finditer(markup))
    return tags


def get_imported_components(
    script: str,
    dialect: str = TSX,
    parsed: Optional[ParsedScript] = None,
) -> Dict[str, str]:
    """
    Map default-import bindings of a component script to their specifiers.

    Named and namespace imports are not treated as components.
    """
    if parsed is None:
        if not script.strip():
            return {}
        parsed = parse_script(script, dialect)
        if parsed is None:
            return {}
    return parsed.default_imports()


def get_used_import_sources(tags: Iterable[str], components: Mapping[str, str]) -> Set[str]:
    """
    Return the specifiers whose bindings appear as tags.

    A tag matches a binding as written or in its PascalCase form, so both
    ``<FooBar/>`` and ``<foo-bar/>`` credit ``import FooBar from "..."``.
    """
    used: Set[str] = set()
    for tag in tags:
        if tag in components:
            used.add(components[tag])
            continue
        pascal = kebab_to_pascal(tag)
        if pascal in components:
            used.add(components[pascal])
    return used
