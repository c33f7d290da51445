"""
Sanitizing of tool parameter schemas for the Google Gemini API.

Gemini's ``types.Schema`` is a closed subset of JSON schema: unknown keywords
such as ``additionalProperties`` are rejected, and so is a ``required`` entry
naming a property that is not declared. MCP servers produce both, so every
schema is filtered against the ``Schema`` model before it is declared.
"""

from typing import Any, Dict, FrozenSet

from google.genai import types

# Keywords whose values are schemas themselves (or lists of them).
_NESTED_KEYS = frozenset({"items", "anyOf", "any_of"})


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _schema_keywords() -> FrozenSet[str]:
    # The model is declared in snake_case and validated through camelCase aliases.
    names = set(types.Schema.model_fields)
    return frozenset(names | {_to_camel(name) for name in names})


SCHEMA_KEYWORDS = _schema_keywords() - {"additionalProperties", "additional_properties"}


def sanitize(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns a copy of ``schema`` that the Gemini API accepts.

    Args:
        schema: A prepared tool parameter schema (no ``$ref`` pointers).

    Returns:
        The schema restricted to keywords Gemini understands, with ``required``
        lists trimmed to declared properties.
    """
    result = _sanitize_node(schema)
    return result if isinstance(result, dict) else {}


def _sanitize_node(node: Any) -> Any:
    if isinstance(node, list):
        return [_sanitize_node(item) for item in node]
    if not isinstance(node, dict):
        return node

    cleaned: Dict[str, Any] = {}
    for key, value in node.items():
        if key not in SCHEMA_KEYWORDS:
            continue
        if key == "properties" and isinstance(value, dict):
            # Property names are user data, never keywords.
            cleaned[key] = {name: _sanitize_node(prop) for name, prop in value.items()}
        elif key in _NESTED_KEYS:
            cleaned[key] = _sanitize_node(value)
        else:
            cleaned[key] = value

    if "required" in cleaned:
        declared = cleaned.get("properties") or {}
        required = [name for name in cleaned["required"] if name in declared]
        if required:
            cleaned["required"] = required
        else:
            del cleaned["required"]

    return cleaned
