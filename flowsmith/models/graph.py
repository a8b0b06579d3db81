"""Data model for the node graph edited on the canvas.

A node's ``data`` payload depends on its ``type``: text nodes carry a label
and content, processor nodes carry a kind and a prompt template. Pydantic
dispatches on the ``type`` discriminator when parsing.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter


INPUT_PLACEHOLDER = "{{input}}"
DEFAULT_PROMPT_TEMPLATE = "Process this text:\n\n{{input}}"


class Position(BaseModel):
    """canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0


class ProcessorKind(str, Enum):
    """What a processor node does with its input."""

    summary = "summary"
    translate = "translate"
    refine = "refine"
    analyze = "analyze"
    extract = "extract"
    custom = "custom"


class TextData(BaseModel):
    """payload of a text node."""

    label: str = ""
    content: str = ""


class ProcessorData(BaseModel):
    """payload of a processor node.

    Older exports stored the kind under ``type`` and the template under
    ``prompt``; both spellings are accepted on input.
    """

    model_config = {"populate_by_name": True}

    kind: ProcessorKind = Field(
        default=ProcessorKind.summary,
        validation_alias=AliasChoices("kind", "type"),
    )
    prompt_template: str = Field(
        default=DEFAULT_PROMPT_TEMPLATE,
        validation_alias=AliasChoices("prompt_template", "promptTemplate", "prompt"),
    )


class TextNode(BaseModel):
    """a node holding user-editable text."""

    # canvas state (width, selected, ...) rides along untouched
    model_config = {"extra": "allow"}

    id: str
    type: Literal["text"] = "text"
    position: Position = Field(default_factory=Position)
    data: TextData = Field(default_factory=TextData)


class ProcessorNode(BaseModel):
    """a node that runs text generation over its upstream text nodes."""

    model_config = {"extra": "allow"}

    id: str
    type: Literal["processor"] = "processor"
    position: Position = Field(default_factory=Position)
    data: ProcessorData = Field(default_factory=ProcessorData)


Node = Annotated[Union[TextNode, ProcessorNode], Field(discriminator="type")]


class Edge(BaseModel):
    """a directed connection between a text node and a processor node."""

    model_config = {"extra": "allow"}

    id: str
    source: str
    target: str


NodeListAdapter = TypeAdapter(list[Node])
EdgeListAdapter = TypeAdapter(list[Edge])
