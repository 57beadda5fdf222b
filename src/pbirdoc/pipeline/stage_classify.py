"""Path Classification - Map document paths to structural roles.

Document identity comes from the folder layout of a report definition:

    definition/report.json
    definition/version.json
    definition/reportExtensions.json
    definition/pages/pages.json
    definition/pages/{pageId}/page.json
    definition/pages/{pageId}/visuals/{visualId}/visual.json
    definition/pages/{pageId}/visuals/{visualId}/mobile.json
    definition/bookmarks/bookmarks.json
    definition/bookmarks/{bookmarkId}.bookmark.json

Paths may carry any prefix (e.g. "Sales.Report/").
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from pbirdoc.models import DocumentRole


UNKNOWN_ID = "unknown"


@dataclass(frozen=True)
class PathRule:
    """Recognizes one document role and extracts its identifiers."""

    role: DocumentRole
    matches: Callable[[str], bool]
    id_pattern: Optional[re.Pattern] = None
    id_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassifiedPath:
    """A document path tagged with its role and path-derived identifiers."""

    path: str
    role: DocumentRole
    ids: dict[str, str] = field(default_factory=dict)

    @property
    def page_id(self) -> Optional[str]:
        return self.ids.get("page_id")

    @property
    def visual_id(self) -> Optional[str]:
        return self.ids.get("visual_id")

    @property
    def bookmark_id(self) -> Optional[str]:
        return self.ids.get("bookmark_id")

    @property
    def has_unknown_id(self) -> bool:
        return UNKNOWN_ID in self.ids.values()


def _ends_with(suffix: str) -> Callable[[str], bool]:
    return lambda path: path == suffix or path.endswith("/" + suffix)


# Most specific first: visual folders live below page folders.
PATH_RULES: tuple[PathRule, ...] = (
    PathRule(
        DocumentRole.VISUAL,
        lambda p: "/visuals/" in p and p.endswith("/visual.json"),
        re.compile(r"/pages/([^/]+)/visuals/([^/]+)/visual\.json$"),
        ("page_id", "visual_id"),
    ),
    PathRule(
        DocumentRole.VISUAL_MOBILE,
        lambda p: "/visuals/" in p and p.endswith("/mobile.json"),
        re.compile(r"/pages/([^/]+)/visuals/([^/]+)/mobile\.json$"),
        ("page_id", "visual_id"),
    ),
    PathRule(DocumentRole.PAGE_LIST, _ends_with("definition/pages/pages.json")),
    PathRule(
        DocumentRole.PAGE,
        lambda p: "/pages/" in p and p.endswith("/page.json"),
        re.compile(r"/pages/([^/]+)/page\.json$"),
        ("page_id",),
    ),
    PathRule(DocumentRole.BOOKMARK_LIST, _ends_with("definition/bookmarks/bookmarks.json")),
    PathRule(
        DocumentRole.BOOKMARK,
        lambda p: "/bookmarks/" in p and p.endswith(".bookmark.json"),
        re.compile(r"/([^/]+)\.bookmark\.json$"),
        ("bookmark_id",),
    ),
    PathRule(DocumentRole.REPORT, _ends_with("definition/report.json")),
    PathRule(DocumentRole.VERSION, _ends_with("definition/version.json")),
    PathRule(DocumentRole.EXTENSIONS, _ends_with("definition/reportExtensions.json")),
)


def normalize_path(path: str) -> str:
    """Use forward slashes and a leading slash so every rule sees one form."""
    normalized = path.replace("\\", "/")
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return normalized


def classify_path(path: str) -> ClassifiedPath:
    """Classify a relative document path.

    Args:
        path: Path relative to the report folder.

    Returns:
        ClassifiedPath with the first matching role. Identifiers the rule's
        pattern cannot extract are set to "unknown".
    """
    normalized = normalize_path(path)
    for rule in PATH_RULES:
        if not rule.matches(normalized):
            continue
        ids: dict[str, str] = {}
        if rule.id_pattern is not None:
            match = rule.id_pattern.search(normalized)
            for index, name in enumerate(rule.id_names, start=1):
                ids[name] = match.group(index) if match else UNKNOWN_ID
        return ClassifiedPath(path=path, role=rule.role, ids=ids)
    return ClassifiedPath(path=path, role=DocumentRole.UNRECOGNIZED)
