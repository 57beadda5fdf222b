"""Shared code-to-name tables.

Every extractor that turns a numeric code or a raw type string into a name
reads it from here, so visual-level and query-level lookups cannot drift.
"""

# QueryAggregateFunction codes
AGGREGATION_FUNCTIONS = {
    0: "Sum",
    1: "Average",
    2: "CountDistinct",
    3: "Min",
    4: "Max",
    5: "Count",
    6: "Median",
    7: "StandardDeviation",
    8: "Variance",
}

# QueryComparisonKind codes
COMPARISON_KINDS = {
    0: "Equal",
    1: "GreaterThan",
    2: "GreaterThanOrEqual",
    3: "LessThan",
    4: "LessThanOrEqual",
}

UNKNOWN_NAME = "Unknown"

# Raw visualType -> display name
VISUAL_TYPE_NAMES = {
    "columnChart": "Column Chart",
    "barChart": "Bar Chart",
    "lineChart": "Line Chart",
    "pieChart": "Pie Chart",
    "card": "Card",
    "multiRowCard": "Multi-row Card",
    "tableEx": "Table",
    "matrix": "Matrix",
    "slicer": "Slicer",
    "textbox": "Text Box",
    "image": "Image",
    "basicShape": "Shape",
    "actionButton": "Button",
    "pivotTable": "Pivot Table",
    "qnaVisual": "Q&A Visual",
    "keyDriversVisual": "Key Drivers",
    "decompositionTreeVisual": "Decomposition Tree",
}

CUSTOM_VISUAL = "CustomVisual"
UNKNOWN_VISUAL = "Unknown"
CUSTOM_VISUAL_PREFIX = "PBI_CV_"
CUSTOM_VISUAL_TOKEN = "CV_"
TEXTBOX_TYPE = "textbox"

FILTER_TYPES = frozenset({
    "Categorical",
    "Range",
    "Advanced",
    "Passthrough",
    "TopN",
    "Include",
    "Exclude",
    "RelativeDate",
    "Tuple",
    "RelativeTime",
    "VisualTopN",
})

# Filter type tag used for prototypeQuery Where clauses
QUERY_FILTER_TYPE = "Query"

FILTER_TYPE_NAMES = {
    "Categorical": "List Filter",
    "Range": "Range Filter",
    "Advanced": "Advanced Filter",
    "TopN": "Top N Filter",
    "RelativeDate": "Relative Date Filter",
    QUERY_FILTER_TYPE: "Query Filter",
}


def aggregation_name(code) -> str:
    """Resolve an aggregation function code, 'Unknown' when unmapped."""
    try:
        return AGGREGATION_FUNCTIONS.get(int(code), UNKNOWN_NAME)
    except (TypeError, ValueError):
        return UNKNOWN_NAME


def comparison_name(code) -> str:
    """Resolve a comparison kind code, 'Unknown' when unmapped."""
    try:
        return COMPARISON_KINDS.get(int(code), UNKNOWN_NAME)
    except (TypeError, ValueError):
        return UNKNOWN_NAME


def filter_type_name(filter_type: str) -> str:
    return FILTER_TYPE_NAMES.get(filter_type, f"{filter_type} Filter")
