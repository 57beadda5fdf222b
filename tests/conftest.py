"""Pytest configuration and fixtures."""

import json

import pytest


def column(entity, prop, source=None):
    """Build a Column field descriptor."""
    ref = {"Source": source} if source else {"Entity": entity}
    return {"Column": {"Expression": {"SourceRef": ref}, "Property": prop}}


def measure(entity, prop):
    """Build a Measure field descriptor."""
    return {"Measure": {"Expression": {"SourceRef": {"Entity": entity}}, "Property": prop}}


def literal(value):
    """Build an expression literal."""
    return {"Literal": {"Value": value}}


def expr_text(text):
    """Build an expr-literal property wrapper."""
    return {"expr": {"Literal": {"Value": f"'{text}'"}}}


REPORT = {
    "$schema": "https://developer.microsoft.com/json-schemas/fabric/item/report/definition/report/1.0.0/schema.json",
    "themeCollection": {"baseTheme": {"name": "CY24SU10"}},
    "filterConfig": {
        "filters": [
            {
                "name": "regionFilter",
                "type": "Categorical",
                "field": column("Sales", "Region"),
                "filter": {
                    "Version": 2,
                    "From": [{"Name": "s", "Entity": "Sales", "Type": 0}],
                    "Where": [
                        {
                            "Condition": {
                                "In": {
                                    "Expressions": [column(None, "Region", source="s")],
                                    "Values": [[literal("'East'")], [literal("'West'")]],
                                }
                            }
                        }
                    ],
                },
            },
            {"name": "oddFilter", "type": "SomethingNew", "field": column("Sales", "Region")},
        ]
    },
    "publicCustomVisuals": ["PBI_CV_0123456789ABCDEF"],
    "settings": {"useStylableVisualContainerHeader": True},
}

VERSION = {
    "$schema": "https://developer.microsoft.com/json-schemas/fabric/item/report/definition/versionMetadata/1.0.0/schema.json",
    "version": "2.0.0",
}

EXTENSIONS = {
    "name": "extension",
    "entities": [
        {"name": "Sales", "measures": [{"name": "Margin %", "dataType": "Double", "expression": "DIVIDE([Margin], [Revenue])"}]}
    ],
}

PAGES = {"pageOrder": ["overview", "details"], "activePageName": "overview"}

OVERVIEW_PAGE = {
    "name": "overview",
    "displayName": "Overview",
    "displayOption": "FitToPage",
    "width": 1280,
    "height": 720,
}

DETAILS_PAGE = {
    "name": "details",
    "displayName": "Details",
    "displayOption": "FitToWidth",
    "width": 1280,
    "height": 1440,
    "visibility": "HiddenInViewMode",
    "filterConfig": {
        "filters": [
            {
                "name": "yearFilter",
                "displayName": "Year",
                "type": "Advanced",
                "field": column("Date", "Year"),
                "isLockedInViewMode": True,
            }
        ]
    },
}

CARD_VISUAL = {
    "name": "44929275ab",
    "position": {"x": 10, "y": 20, "z": 1000, "width": 200, "height": 120, "tabOrder": 1},
    "visual": {
        "visualType": "card",
        "query": {
            "queryState": {
                "Values": {
                    "projections": [
                        {"field": measure("Sales", "Total Revenue"), "queryRef": "Sales.Total Revenue"}
                    ]
                }
            }
        },
    },
}

CHART_VISUAL = {
    "name": "chart1",
    "position": {"x": 220, "y": 20, "z": 2000, "width": 600, "height": 400},
    "visual": {
        "visualType": "columnChart",
        "query": {
            "queryState": {
                "Category": {"projections": [{"field": column("Date", "Month"), "queryRef": "Date.Month"}]},
                "Y": {
                    "projections": [
                        {
                            "field": {"Aggregation": {"Expression": column("Sales", "Amount"), "Function": 0}},
                            "queryRef": "Sum(Sales.Amount)",
                        }
                    ]
                },
            }
        },
        "objects": {
            "title": [{"properties": {"text": expr_text("Chart1")}}],
            "dataPoint": [{"properties": {"fill": {"solid": {"color": expr_text("#118DFF")}}}}],
        },
        "visualContainerObjects": {
            "title": [
                {
                    "properties": {
                        "text": expr_text("Revenue Trend"),
                        "fontSize": {"expr": {"Literal": {"Value": "14D"}}},
                    }
                }
            ],
            "background": [{"properties": {"color": {"solid": {"color": "#FFFFFF"}}, "transparency": {"literal": {"value": 0}}}}],
        },
    },
    "filterConfig": {
        "filters": [
            {
                "name": "amountFilter",
                "type": "Advanced",
                "field": column("Sales", "Amount"),
                "filter": {
                    "Version": 2,
                    "From": [{"Name": "s", "Entity": "Sales", "Type": 0}],
                    "Where": [
                        {
                            "Condition": {
                                "Comparison": {
                                    "ComparisonKind": 1,
                                    "Left": column(None, "Amount", source="s"),
                                    "Right": literal("10L"),
                                }
                            }
                        }
                    ],
                },
            }
        ]
    },
}

CHART_MOBILE = {"position": {"x": 0, "y": 0, "z": 0, "width": 320, "height": 200}}

LEGACY_VISUAL = {
    "name": "legacy1",
    "position": {"x": 0, "y": 0, "width": 400, "height": 300},
    "visual": {
        "singleVisual": {
            "visualType": "tableEx",
            "projections": {"Values": [{"queryRef": "p.Name"}, {"queryRef": "Sum(s.Qty)"}]},
            "prototypeQuery": {
                "Version": 2,
                "From": [{"Name": "p", "Entity": "Product", "Type": 0}, {"Name": "s", "Entity": "Sales", "Type": 0}],
                "Select": [
                    {"Column": {"Expression": {"SourceRef": {"Source": "p"}}, "Property": "Name"}, "Name": "p.Name"},
                    {
                        "Aggregation": {
                            "Expression": {"Column": {"Expression": {"SourceRef": {"Source": "s"}}, "Property": "Qty"}},
                            "Function": 5,
                        },
                        "Name": "Sum(s.Qty)",
                    },
                ],
                "Where": [
                    {
                        "Condition": {
                            "Not": {
                                "Expression": {
                                    "Comparison": {
                                        "ComparisonKind": 0,
                                        "Left": {"Column": {"Expression": {"SourceRef": {"Source": "p"}}, "Property": "Name"}},
                                        "Right": literal("'Widget'"),
                                    }
                                }
                            }
                        }
                    }
                ],
            },
            "objects": {"title": [{"properties": {"text": {"literal": {"value": "Product Table"}}}}]},
        }
    },
    "isHidden": True,
}

BOOKMARKS = {"items": [{"name": "b2"}, {"name": "grp", "displayName": "Saved Views", "children": ["b1"]}]}

BOOKMARK_B1 = {"name": "b1", "displayName": "Only East", "explorationState": {"activeSection": "overview"}}
BOOKMARK_B2 = {"name": "b2", "displayName": "Details View", "explorationState": {"activeSection": "details"}}


def build_documents():
    """Return a complete report as {relative_path: raw_text}."""
    documents = {
        "definition/report.json": REPORT,
        "definition/version.json": VERSION,
        "definition/reportExtensions.json": EXTENSIONS,
        "definition/pages/pages.json": PAGES,
        "definition/pages/overview/page.json": OVERVIEW_PAGE,
        "definition/pages/overview/visuals/44929275ab/visual.json": CARD_VISUAL,
        "definition/pages/overview/visuals/chart1/visual.json": CHART_VISUAL,
        "definition/pages/overview/visuals/chart1/mobile.json": CHART_MOBILE,
        "definition/pages/details/page.json": DETAILS_PAGE,
        "definition/pages/details/visuals/legacy1/visual.json": LEGACY_VISUAL,
        "definition/bookmarks/bookmarks.json": BOOKMARKS,
        "definition/bookmarks/b1.bookmark.json": BOOKMARK_B1,
        "definition/bookmarks/b2.bookmark.json": BOOKMARK_B2,
    }
    return {path: json.dumps(data) for path, data in documents.items()}


@pytest.fixture
def report_documents():
    """A complete report document set keyed by relative path."""
    return build_documents()


@pytest.fixture
def report_dir(tmp_path, report_documents):
    """Write the sample report to a temporary folder."""
    root = tmp_path / "Sales.Report"
    for relative, text in report_documents.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir
