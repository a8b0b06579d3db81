"""SDK for driving flows from a client: persistence, generation, auto-save."""

from flowsmith.sdk.autosave import AutoSaveController
from flowsmith.sdk.client import FlowClient
from flowsmith.sdk.editor import EditorSession
from flowsmith.sdk.generation import TextGenerationClient
from flowsmith.sdk.session import SessionContext

__all__ = [
    "AutoSaveController",
    "EditorSession",
    "FlowClient",
    "SessionContext",
    "TextGenerationClient",
]
