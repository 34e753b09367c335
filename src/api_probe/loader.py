"""Loading OpenAPI documents from files or URLs."""

import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

from api_probe.errors import DocumentError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


def is_url(source: str | Path) -> bool:
    return str(source).startswith(("http://", "https://"))


def load_document(source: str | Path, timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
    """Load an OpenAPI document from a URL, or a YAML/JSON file."""
    if is_url(source):
        doc = fetch_document(str(source), timeout=timeout)
    else:
        doc = read_document(Path(source))
    if not isinstance(doc, dict):
        raise DocumentError(f"{source} does not contain an OpenAPI document")
    return doc


def read_document(file_path: Path) -> Any:
    text = file_path.read_text(encoding="utf-8")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentError(f"Could not parse {file_path}: {e}") from e


def fetch_document(url: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """GET a JSON OpenAPI document."""
    logger.debug("Fetching %s", url)
    try:
        resp = httpx.get(url, timeout=timeout, follow_redirects=True)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        raise DocumentError(f"Could not fetch document from {url!r}: {e}") from e
    try:
        return resp.json()
    except ValueError as e:
        raise DocumentError(f"Server at {url!r} returned non-JSON content") from e


def schema_map(doc: dict[str, Any]) -> dict[str, dict]:
    """The `components.schemas` table, empty when the document declares none."""
    components = doc.get("components") or {}
    schemas = components.get("schemas")
    if schemas is None:
        logger.debug("Document has no components.schemas")
        return {}
    if not isinstance(schemas, dict):
        raise DocumentError("'components.schemas' must be a mapping")
    return schemas


def document_paths(doc: dict[str, Any]) -> dict[str, Any]:
    paths = doc.get("paths")
    if not isinstance(paths, dict):
        raise DocumentError("OpenAPI document is missing 'paths'")
    return paths
