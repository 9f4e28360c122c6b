from pathlib import Path
from typing import Any, Dict, Union

from jsonschema import validate, ValidationError, SchemaError
from packaging import version

from taskcascade.logs import get_logger
from taskcascade.models import TaskDocument
from taskcascade.recovery import CorruptionError, FatalError, MigrationNeededError
from taskcascade.version import APP_SCHEMA_VERSION

log = get_logger("data.validate")

_document_schema = None

def document_schema() -> dict:
    """JSON schema of the stored task file, generated from the pydantic model."""
    global _document_schema
    if _document_schema is None:
        schema = TaskDocument.model_json_schema()
        schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
        _document_schema = schema
    return _document_schema

def validate_document(data: Dict[str, Any], source: Union[Path, str] = "<memory>") -> bool:
    """
    Validate raw task file data against the document schema.

    Raises:
        CorruptionError: If the data does not match the schema.
        FatalError: If the generated schema itself is invalid.
    """
    try:
        validate(instance=data, schema=document_schema())
    except ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        log.error(f"File '{source}' FAILED validation at {location}: {e.message}")
        raise CorruptionError(f"{source} is not a valid task file ({location}: {e.message})") from e
    except SchemaError as e:
        log.critical(f"Task document schema is invalid: {e.message}")
        raise FatalError(f"Task document schema is invalid: {e.message}") from e

    log.debug(f"File '{source}' is VALID for schema version '{APP_SCHEMA_VERSION}'.")
    return True

def check_schema_version(found: str, source: Union[Path, str] = "<memory>") -> bool:
    """
    Compare a file's schema version with the one this application writes.

    Raises:
        MigrationNeededError: The file was written by an older schema version.
        FatalError: The file was written by a newer application.
        CorruptionError: The version string cannot be parsed.
    """
    try:
        found_version = version.parse(found)
    except version.InvalidVersion as e:
        raise CorruptionError(f"Invalid schema version '{found}' in {source}") from e

    app_version = version.parse(APP_SCHEMA_VERSION)
    log.info(f"FILE: {found}; APP: {APP_SCHEMA_VERSION}; SOURCE: {source}")
    if found_version < app_version:
        raise MigrationNeededError(f"{source} uses schema {found}, application uses {APP_SCHEMA_VERSION}; migrate data")
    if found_version > app_version:
        raise FatalError(f"{source} uses schema {found}, newer than application schema {APP_SCHEMA_VERSION}")
    return True
