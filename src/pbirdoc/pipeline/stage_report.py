"""Report Normalization - Orchestrate the two-phase normalization run.

Phase 1 (collect) reads and decodes the whole document set.
Phase 2 (resolve) normalizes visuals, joins them to pages by path-derived
page id, and merges report root, version and extensions documents into one
Report. Nothing is resolved before the whole set is known.
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pbirdoc.models import (
    UNKNOWN_TABLE,
    Bookmark,
    DocumentRole,
    ExtensionMeasure,
    FilterScope,
    NormalizationResult,
    Page,
    ParseIssue,
    Report,
    ThemeRef,
    Visual,
)
from pbirdoc.sources import DirectoryFileSource
from pbirdoc.validation import RequiredKeysValidator, Validator

from .stage_classify import UNKNOWN_ID
from .stage_filters import parse_filter_config
from .stage_literal import as_list, as_text
from .stage_page import PageList, normalize_page, order_pages, parse_page_list
from .stage_read import DocumentSet, ParsedDocument, read_documents
from .stage_visual import normalize_visual


logger = logging.getLogger(__name__)


def merge_sections(*sections: dict[str, Any]) -> dict[str, Any]:
    """Merge report field maps in order.

    A later section only fills fields an earlier section left unset (None or
    empty); it never overwrites a value that is already there.
    """
    merged: dict[str, Any] = {}
    for section in sections:
        for key, value in section.items():
            if value is None or value == [] or value == {}:
                continue
            if key not in merged:
                merged[key] = value
    return merged


def report_root_fields(data: Any) -> dict[str, Any]:
    """Report fields carried by definition/report.json."""
    if not isinstance(data, dict):
        return {}

    theme = None
    themes = data.get("themeCollection")
    if isinstance(themes, dict):
        base = themes.get("baseTheme") if isinstance(themes.get("baseTheme"), dict) else {}
        custom = themes.get("customTheme") if isinstance(themes.get("customTheme"), dict) else {}
        base_name, custom_name = as_text(base.get("name")), as_text(custom.get("name"))
        if base_name or custom_name:
            theme = ThemeRef(base_theme=base_name, custom_theme=custom_name)

    custom_visuals = [v for v in as_list(data.get("publicCustomVisuals")) if isinstance(v, str)]
    for visual in as_list(data.get("organizationCustomVisuals")):
        if isinstance(visual, dict) and as_text(visual.get("name")):
            custom_visuals.append(visual["name"])
        elif isinstance(visual, str):
            custom_visuals.append(visual)

    return {
        "schema_url": as_text(data.get("$schema")),
        "theme": theme,
        "filters": parse_filter_config(data.get("filterConfig"), FilterScope.REPORT),
        "custom_visuals": custom_visuals,
        "settings": data.get("settings") if isinstance(data.get("settings"), dict) else None,
    }


def version_fields(data: Any) -> dict[str, Any]:
    """Report fields carried by definition/version.json."""
    if not isinstance(data, dict):
        return {}
    version = data.get("version")
    return {
        "schema_version": str(version) if isinstance(version, (str, int, float)) else None,
        "schema_url": as_text(data.get("$schema")),
    }


def extension_fields(data: Any) -> dict[str, Any]:
    """Report fields carried by definition/reportExtensions.json."""
    if not isinstance(data, dict):
        return {}
    measures = []
    for entity in as_list(data.get("entities")):
        if not isinstance(entity, dict):
            continue
        for measure in as_list(entity.get("measures")):
            if isinstance(measure, dict) and as_text(measure.get("name")):
                measures.append(
                    ExtensionMeasure(
                        table=as_text(entity.get("name")) or UNKNOWN_TABLE,
                        name=measure["name"],
                        expression=as_text(measure.get("expression")),
                        data_type=as_text(measure.get("dataType")),
                    )
                )
    return {"extension_measures": measures}


def unknown_id_warnings(documents: list[ParsedDocument]) -> list[ParseIssue]:
    """One warning per role whose paths collapsed to the 'unknown' identifier."""
    collapsed: dict[DocumentRole, list[str]] = defaultdict(list)
    for doc in documents:
        if doc.location.has_unknown_id:
            collapsed[doc.role].append(doc.path)

    warnings = []
    for role, paths in collapsed.items():
        message = f"{len(paths)} {role.value} path(s) resolved to identifier '{UNKNOWN_ID}'"
        if len(paths) > 1:
            message += " and collide; only the first is used"
        warnings.append(ParseIssue(path=", ".join(sorted(paths)), message=message))
        logger.warning("%s: %s", message, ", ".join(sorted(paths)))
    return warnings


def _index(documents: list[ParsedDocument], key_fn) -> dict:
    """Index documents by key, keeping the first by path order."""
    index: dict = {}
    for doc in sorted(documents, key=lambda d: d.path):
        index.setdefault(key_fn(doc), doc)
    return index


def build_bookmarks(document_set: DocumentSet) -> list[Bookmark]:
    """Normalize bookmark documents, ordered as listed in bookmarks.json."""
    order: list[str] = []
    groups: dict[str, str] = {}
    bookmark_list = document_set.first(DocumentRole.BOOKMARK_LIST)
    items = bookmark_list.data.get("items") if bookmark_list and isinstance(bookmark_list.data, dict) else None
    for item in as_list(items):
        if not isinstance(item, dict) or not as_text(item.get("name")):
            continue
        children = as_list(item.get("children"))
        if children:
            for child in children:
                if isinstance(child, str):
                    order.append(child)
                    groups[child] = as_text(item.get("displayName")) or item["name"]
        else:
            order.append(item["name"])

    bookmarks = []
    for bookmark_id, doc in _index(document_set.by_role(DocumentRole.BOOKMARK), lambda d: d.location.bookmark_id).items():
        data = doc.data if isinstance(doc.data, dict) else {}
        exploration = data.get("explorationState")
        target = as_text(exploration.get("activeSection")) if isinstance(exploration, dict) else None
        bookmarks.append(
            Bookmark(
                id=bookmark_id,
                display_name=as_text(data.get("displayName")) or as_text(data.get("name")) or bookmark_id,
                target_page_id=target,
                group=groups.get(bookmark_id) or groups.get(as_text(data.get("name"))),
            )
        )

    position = {name: index for index, name in enumerate(order)}
    return sorted(bookmarks, key=lambda b: (position.get(b.id, len(position)), b.id))


class ReportNormalizer:
    """Normalizes a PBIR document set into a canonical Report.

    Per-document problems never abort the run; they are recorded on the
    result. Only a missing report root is flagged as a top-level condition.
    """

    def __init__(
        self,
        validator: Optional[Validator] = None,
        encoding: Optional[str] = None,
    ):
        """Initialize the normalizer.

        Args:
            validator: Called as validator(data, schema_name) for every
                recognized document. Failures become warnings. Defaults to
                RequiredKeysValidator.
            encoding: Encoding for documents delivered as bytes.
        """
        self.validator = validator or RequiredKeysValidator()
        self.encoding = encoding

    def normalize_directory(self, root: Union[str, Path], max_workers: Optional[int] = None) -> NormalizationResult:
        """Read every JSON file below a report folder and normalize it."""
        return self.normalize(DirectoryFileSource(root, max_workers=max_workers, encoding=self.encoding))

    def normalize(self, source: Iterable[tuple[str, Union[str, bytes]]]) -> NormalizationResult:
        """Normalize a complete document set.

        Args:
            source: Iterable of (relative_path, raw_text) pairs.

        Returns:
            NormalizationResult with the Report, errors, warnings and the
            root_missing flag.
        """
        # Phase 1: collect
        document_set = read_documents(source, validator=self.validator, encoding=self.encoding)
        warnings = list(document_set.warnings)
        warnings.extend(unknown_id_warnings(document_set.documents))

        # Phase 2: resolve
        page_list_doc = document_set.first(DocumentRole.PAGE_LIST)
        page_list = parse_page_list(page_list_doc.data if page_list_doc else None)

        pages, page_warnings = self._build_pages(document_set, page_list)
        warnings.extend(page_warnings)

        root = document_set.first(DocumentRole.REPORT)
        version = document_set.first(DocumentRole.VERSION)
        extensions = document_set.first(DocumentRole.EXTENSIONS)
        fields = merge_sections(
            report_root_fields(root.data if root else None),
            version_fields(version.data if version else None),
            extension_fields(extensions.data if extensions else None),
            {"active_page_id": page_list.active_page_id},
        )

        report = Report(
            **fields,
            pages=pages,
            bookmarks=build_bookmarks(document_set),
        )

        root_missing = root is None
        if root_missing:
            logger.warning("No readable definition/report.json in the document set")

        logger.info(
            "Normalized %d pages, %d visuals, %d bookmarks (%d errors, %d warnings)",
            len(report.pages),
            report.visual_count,
            len(report.bookmarks),
            len(document_set.errors),
            len(warnings),
        )
        return NormalizationResult(
            report=report,
            errors=document_set.errors,
            warnings=warnings,
            root_missing=root_missing,
            document_count=document_set.seen_count,
        )

    def _build_pages(self, document_set: DocumentSet, page_list: PageList) -> tuple[list[Page], list[ParseIssue]]:
        page_docs = _index(document_set.by_role(DocumentRole.PAGE), lambda d: d.location.page_id)
        visual_docs = _index(
            document_set.by_role(DocumentRole.VISUAL),
            lambda d: (d.location.page_id, d.location.visual_id),
        )
        mobile_docs = _index(
            document_set.by_role(DocumentRole.VISUAL_MOBILE),
            lambda d: (d.location.page_id, d.location.visual_id),
        )

        warnings = []
        visuals_by_page: dict[str, list[Visual]] = defaultdict(list)
        for (page_id, visual_id), doc in visual_docs.items():
            mobile = mobile_docs.get((page_id, visual_id))
            try:
                visual = normalize_visual(visual_id, page_id, doc.data, mobile.data if mobile else None)
            except Exception as e:
                warnings.append(_skipped(doc, e))
                continue
            visuals_by_page[page_id].append(visual)

        pages = []
        for page_id in sorted(set(page_docs) | set(visuals_by_page)):
            page_doc = page_docs.get(page_id)
            visuals = visuals_by_page.get(page_id, [])
            if page_doc is not None:
                try:
                    pages.append(normalize_page(page_id, page_doc.data, visuals, page_list))
                    continue
                except Exception as e:
                    # the page is rebuilt from its visuals below
                    warnings.append(_skipped(page_doc, e))
            else:
                count = len(visuals)
                warnings.append(
                    ParseIssue(
                        path=f"definition/pages/{page_id}/page.json",
                        message=f"Page document missing; page synthesized from {count} visual document(s)",
                    )
                )
            pages.append(normalize_page(page_id, None, visuals, page_list))
        return order_pages(pages), warnings


def _skipped(doc: ParsedDocument, error: Exception) -> ParseIssue:
    logger.warning("Skipping %s: %s", doc.path, error)
    return ParseIssue(path=doc.path, message=f"Document skipped: {error}")


def normalize_report(
    source: Iterable[tuple[str, Union[str, bytes]]],
    validator: Optional[Validator] = None,
) -> NormalizationResult:
    """Normalize a document set with a default ReportNormalizer."""
    return ReportNormalizer(validator=validator).normalize(source)
