"""Export JSON schemas for the response envelope and handoff wire models."""

import json
from pathlib import Path

from pydantic import BaseModel

from backend.app.models import (
    AccessCheckRequest,
    AccessCheckResponse,
    AccessContextResponse,
    ApiErrorResponse,
    HandoffDraft,
    HandoffPayload,
    HandoffValidationResult,
    MembershipSummary,
)

SCHEMA_MODELS: dict[str, type[BaseModel]] = {
    "ApiErrorResponse": ApiErrorResponse,
    "HandoffDraft": HandoffDraft,
    "HandoffPayload": HandoffPayload,
    "HandoffValidationResult": HandoffValidationResult,
    "AccessContextResponse": AccessContextResponse,
    "MembershipSummary": MembershipSummary,
    "AccessCheckRequest": AccessCheckRequest,
    "AccessCheckResponse": AccessCheckResponse,
}


def export_schemas(schemas_dir: Path) -> list[Path]:
    """Write one ``<Name>.schema.json`` per wire model.

    Returns:
        Paths written
    """
    schemas_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name, model in SCHEMA_MODELS.items():
        path = schemas_dir / f"{name}.schema.json"
        with open(path, "w") as f:
            json.dump(model.model_json_schema(by_alias=True), f, indent=2)
        written.append(path)
    return written


def main() -> None:
    """Export schemas to docs/schemas/."""
    for path in export_schemas(Path("docs/schemas")):
        print(f"Exported {path.stem.removesuffix('.schema')} schema to {path}")


if __name__ == "__main__":
    main()
