"""Export/import documents.

An export is a standalone JSON file: ``{name, nodes, edges, exported_at}``.
Importing one always creates a new flow whose name is marked as imported.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from flowsmith.errors import InvalidFormatError
from flowsmith.graph.validation import validate_graph
from flowsmith.models.flow import ExportDocument, Flow
from flowsmith.utils.identifiers import utc_timestamp

IMPORTED_PREFIX = "[Imported] "
REQUIRED_KEYS = ("name", "nodes", "edges")


def build_export_document(flow: Flow) -> ExportDocument:
    return ExportDocument(
        name=flow.name,
        nodes=flow.nodes,
        edges=flow.edges,
        exported_at=utc_timestamp(),
    )


def imported_name(name: str) -> str:
    return f"{IMPORTED_PREFIX}{name}"


def parse_export_document(payload: dict | str | bytes) -> ExportDocument:
    """Validate a raw export document.

    Raises:
        InvalidFormatError: not JSON, a required key is missing, or the
            nodes/edges do not parse.
        InvalidConnectionError: an edge is dangling or joins two nodes of
            the same type.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InvalidFormatError(f"Import file is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise InvalidFormatError("Import file must contain a JSON object")
    missing = [key for key in REQUIRED_KEYS if key not in payload]
    if missing:
        raise InvalidFormatError(f"Invalid flow file: missing {', '.join(missing)}")

    try:
        document = ExportDocument.model_validate(payload)
    except ValidationError as exc:
        raise InvalidFormatError(f"Invalid flow file: {exc}") from exc
    validate_graph(document.nodes, document.edges)
    return document


def write_export_file(document: ExportDocument, path: Path | str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
    return path


def read_export_file(path: Path | str) -> ExportDocument:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidFormatError(f"Cannot read import file {path}: {exc}") from exc
    return parse_export_document(raw)
