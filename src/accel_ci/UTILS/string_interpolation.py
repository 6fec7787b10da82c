"""
Utilities for placeholder substitution in Dockerfile templates and
environment interpolation in matrix files.
"""
import re
from typing import Dict, Mapping

_ENV_PATTERN = re.compile(r'\$\{([^}:]+)(?::-([^}]*))?\}')


def render(template: str, bindings: Mapping[str, str]) -> str:
    """
    Replaces every literal occurrence of each token in ``bindings`` with its value.

    Matching is case-sensitive and non-overlapping, scanning left to right in a
    single pass; where two tokens could match at the same position the longer
    one wins. Substituted values are never rescanned. Everything outside the
    tokens is returned unchanged.

    :param template: Template text, e.g. the contents of ``ubuntu.Dockerfile``.
    :param bindings: Mapping of token to replacement value.
    :return: The rendered text.
    """
    if not bindings:
        return template
    if any(not token for token in bindings):
        raise ValueError("Placeholder tokens must be non-empty")

    tokens = sorted(bindings, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in tokens))
    return pattern.sub(lambda match: bindings[match.group(0)], template)


def interpolate_env(text: str, context: Dict[str, str]) -> str:
    """
    Expands ``${VAR}`` and ``${VAR:-default}`` against ``context``.

    :raises KeyError: If a variable is unset and has no default.
    """
    def replace(match):
        name, default = match.group(1), match.group(2)
        value = context.get(name)
        if default is not None:
            return value if value else default
        if value is None:
            raise KeyError(f"Variable {name} not found in context")
        return value

    return _ENV_PATTERN.sub(replace, text)
