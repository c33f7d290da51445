from typing import Any, Dict, Set

import jsonref  # type: ignore

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

_METADATA_KEYS = ("$defs", "$schema", "$id", "title", "definitions")


class SchemaValidator:
    """
    Helper class for validating and normalizing tool parameter schemas.

    Provider schemas (MCP ``inputSchema`` or pydantic generated ones) go through
    :meth:`prepare` before they are stored on a ``ToolDescriptor``.
    """

    @classmethod
    def prepare(cls, schema: Any) -> Dict[str, Any]:
        """Check, resolve and sanitize a raw parameter schema.

        Args:
            schema: The raw JSON schema, or None for a parameterless tool.

        Returns:
            A self-contained object schema without ``$ref`` pointers.

        Raises:
            ToolValidationError: If the schema is not an object or is recursive.
        """
        if schema is None or schema == {}:
            return {"type": "object", "properties": {}}

        if not isinstance(schema, dict):
            raise ToolValidationError(f"Tool schema must be a JSON object, got {type(schema).__name__}.")

        cls.assert_no_recursive_refs(schema)
        # proxies=False ensures we get a plain dict back, not JsonRef objects
        resolved = jsonref.replace_refs(schema, proxies=False)
        sanitized = cls.sanitize_schema(resolved)

        sanitized.setdefault("type", "object")
        if sanitized["type"] == "object":
            sanitized.setdefault("properties", {})
        return sanitized

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                if "$ref" in node:
                    ref = node["$ref"]
                    if ref in path:
                        msg = f"Recursive structure detected: {ref}. Recursive tool inputs are not supported."
                        logger.error(msg)
                        raise ToolValidationError(msg)

                    # e.g. #/$defs/CoinFilter
                    if ref.startswith("#"):
                        def_name = ref.split("/")[-1]
                        if def_name in defs:
                            check(defs[def_name], path | {ref})
                    return

                for v in node.values():
                    check(v, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema for better compatibility with LLM providers.

        Removes $defs, $schema, $id, title and collapses ``anyOf`` unions of a
        single type with ``null`` (Optional fields) into that type.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = {k: v for k, v in schema.items() if k not in _METADATA_KEYS}

        any_of = new_schema.get("anyOf")
        if isinstance(any_of, list):
            non_null = [x for x in any_of if not (isinstance(x, dict) and x.get("type") == "null")]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                # Keys next to anyOf (description, default) win over the inner type.
                merged = dict(non_null[0])
                merged.update({k: v for k, v in new_schema.items() if k != "anyOf"})
                return SchemaValidator.sanitize_schema(merged)

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                # Property names may collide with metadata keys ("title"), keep them all.
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [SchemaValidator.sanitize_schema(item) for item in value]

        return new_schema
