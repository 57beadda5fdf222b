"""Base models and common types for the PBIR canonical model."""

from enum import Enum

from pydantic import BaseModel


class DocumentRole(str, Enum):
    """Structural role of a document inside a report definition folder."""

    REPORT = "report"
    VERSION = "version"
    EXTENSIONS = "extensions"
    PAGE_LIST = "page_list"
    PAGE = "page"
    VISUAL = "visual"
    VISUAL_MOBILE = "visual_mobile"
    BOOKMARK_LIST = "bookmark_list"
    BOOKMARK = "bookmark"
    UNRECOGNIZED = "unrecognized"


class FieldKind(str, Enum):
    """Semantic kind of a field binding."""

    MEASURE = "measure"
    DIMENSION = "dimension"
    HIERARCHY = "hierarchy"


class BindingSource(str, Enum):
    """Query encoding a field binding was read from."""

    PROJECTION = "projection"  # visual.query.queryState
    SELECT = "select"  # singleVisual.prototypeQuery.Select
    DATA_ROLE = "data_role"  # singleVisual.dataRoles


class FilterScope(str, Enum):
    """Where a filter was declared."""

    REPORT = "report"
    PAGE = "page"
    VISUAL = "visual"
    QUERY = "query"


class DisplayOption(str, Enum):
    """Page display option."""

    FIT_TO_PAGE = "FitToPage"
    FIT_TO_WIDTH = "FitToWidth"
    ACTUAL_SIZE = "ActualSize"
    UNKNOWN = "Unknown"


class CanonicalModel(BaseModel):
    """Base class for all canonical records.

    Records are frozen: once a stage has built one it is never changed.
    """

    class Config:
        frozen = True
