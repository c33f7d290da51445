from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ToolDescriptor(BaseModel):
    """
    Represents a tool the language model may ask to have executed.

    Descriptors are built once when the catalog is loaded and never change
    afterwards, so the model is frozen.

    Attributes:
        name: The unique name of the tool within its catalog.
        description: A brief description of what the tool does.
        parameters: A JSON schema describing the tool's input object.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
