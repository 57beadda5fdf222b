"""Document Reading Stage - Decode, classify and validate raw documents.

This is the collect phase. It consumes a whole file source before any
cross-document resolution happens, records one error per document that
fails to decode and one warning per document that fails validation.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from pbirdoc.config import settings
from pbirdoc.models import DocumentRole, ParseIssue
from pbirdoc.validation import Validator

from .stage_classify import ClassifiedPath, classify_path


logger = logging.getLogger(__name__)


SCHEMA_NAMES = {
    DocumentRole.REPORT: "report",
    DocumentRole.VERSION: "versionMetadata",
    DocumentRole.EXTENSIONS: "reportExtension",
    DocumentRole.PAGE_LIST: "pagesMetadata",
    DocumentRole.PAGE: "page",
    DocumentRole.VISUAL: "visualContainer",
    DocumentRole.VISUAL_MOBILE: "visualContainerMobileState",
    DocumentRole.BOOKMARK_LIST: "bookmarksMetadata",
    DocumentRole.BOOKMARK: "bookmark",
}


@dataclass(frozen=True)
class ParsedDocument:
    """A decoded document and where it came from."""

    location: ClassifiedPath
    data: Any

    @property
    def path(self) -> str:
        return self.location.path

    @property
    def role(self) -> DocumentRole:
        return self.location.role


@dataclass
class DocumentSet:
    """Every decoded document of one report, plus what went wrong reading them."""

    documents: list[ParsedDocument] = field(default_factory=list)
    errors: list[ParseIssue] = field(default_factory=list)
    warnings: list[ParseIssue] = field(default_factory=list)
    seen_count: int = 0

    def by_role(self, role: DocumentRole) -> list[ParsedDocument]:
        return [doc for doc in self.documents if doc.role == role]

    def first(self, role: DocumentRole) -> Optional[ParsedDocument]:
        """Return the first document with a role, by path order."""
        matches = sorted(self.by_role(role), key=lambda doc: doc.path)
        return matches[0] if matches else None


def decode_document(raw: Union[str, bytes], encoding: Optional[str] = None) -> Any:
    """Decode raw document text as JSON.

    Raises:
        ValueError: If the text is not valid JSON or cannot be decoded.
    """
    if isinstance(raw, bytes):
        raw = raw.decode(encoding or settings.encoding)
    # a BOM survives when the source read with plain utf-8
    return json.loads(raw.lstrip("\ufeff"))


def read_documents(
    source: Iterable[tuple[str, Union[str, bytes]]],
    validator: Optional[Validator] = None,
    encoding: Optional[str] = None,
) -> DocumentSet:
    """Read, classify, decode and validate a complete document set.

    Args:
        source: Iterable of (relative_path, raw_text) pairs.
        validator: Optional validator called as validator(data, schema_name).
        encoding: Encoding for documents delivered as bytes.

    Returns:
        DocumentSet with every recognized document that decoded.
    """
    document_set = DocumentSet()

    for path, raw in source:
        document_set.seen_count += 1
        location = classify_path(path)
        if location.role == DocumentRole.UNRECOGNIZED:
            logger.debug("Skipping unrecognized document %s", path)
            continue

        try:
            data = decode_document(raw, encoding)
        except ValueError as e:
            logger.warning("Failed to parse %s: %s", path, e)
            document_set.errors.append(ParseIssue(path=path, message=f"Error parsing document: {e}"))
            continue

        if validator is not None:
            warning = _validate(validator, data, location)
            if warning is not None:
                document_set.warnings.append(warning)

        document_set.documents.append(ParsedDocument(location=location, data=data))

    logger.debug(
        "Read %d documents (%d errors, %d warnings)",
        len(document_set.documents),
        len(document_set.errors),
        len(document_set.warnings),
    )
    return document_set


def _validate(validator: Validator, data: Any, location: ClassifiedPath) -> Optional[ParseIssue]:
    schema_name = SCHEMA_NAMES[location.role]
    try:
        result = validator(data, schema_name)
    except Exception as e:
        return ParseIssue(path=location.path, message=f"Validator failed ({schema_name}): {e}")

    if result.valid:
        return None
    return ParseIssue(
        path=location.path,
        message=f"Schema validation failed ({schema_name}): {', '.join(result.errors)}",
    )
