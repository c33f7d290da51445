"""Tool parameter schema validation and normalization."""

from .schema_validator import SchemaValidator

__all__ = ["SchemaValidator"]
