"""Tests for end-to-end report normalization."""

import json

import pytest

from conftest import CARD_VISUAL, OVERVIEW_PAGE

from pbirdoc import normalize_report
from pbirdoc.models import FilterScope
from pbirdoc.pipeline import ReportNormalizer
from pbirdoc.pipeline import stage_report
from pbirdoc.pipeline.stage_report import merge_sections
from pbirdoc.sources import MemoryFileSource
from pbirdoc.validation import RequiredKeysValidator


@pytest.fixture
def result(report_documents):
    """Normalize the sample report from memory."""
    return ReportNormalizer(validator=RequiredKeysValidator()).normalize(MemoryFileSource(report_documents))


class TestReportFields:
    """Tests for merged report-level fields."""

    def test_clean_run(self, result, report_documents):
        assert result.ok
        assert result.errors == []
        assert result.warnings == []
        assert not result.root_missing
        assert result.document_count == len(report_documents)

    def test_metadata(self, result):
        report = result.report
        assert report.schema_version == "2.0.0"
        assert "/report/1.0.0/" in report.schema_url
        assert report.theme.base_theme == "CY24SU10"
        assert report.custom_visuals == ["PBI_CV_0123456789ABCDEF"]
        assert report.active_page_id == "overview"
        assert report.settings == {"useStylableVisualContainerHeader": True}

    def test_extension_measures(self, result):
        measure = result.report.extension_measures[0]
        assert (measure.table, measure.name, measure.data_type) == ("Sales", "Margin %", "Double")

    def test_report_filters(self, result):
        """Only filters of a supported type are kept."""
        filters = result.report.filters
        assert [f.name for f in filters] == ["regionFilter"]
        assert filters[0].scope == FilterScope.REPORT


class TestPagesAndVisuals:
    def test_page_order(self, result):
        assert [p.id for p in result.report.pages] == ["overview", "details"]

    def test_visuals_joined_by_page(self, result):
        overview = result.report.get_page("overview")
        assert [v.display_name for v in overview.visuals] == ["Card (44929275)", "Revenue Trend"]
        assert overview.get_visual("chart1").mobile_position.height == 200
        assert result.report.get_page("details").visuals[0].id == "legacy1"
        assert result.report.visual_count == 3

    def test_bookmarks(self, result):
        """Bookmarks follow bookmarks.json order and carry their group."""
        bookmarks = result.report.bookmarks
        assert [b.id for b in bookmarks] == ["b2", "b1"]
        assert bookmarks[1].group == "Saved Views"
        assert bookmarks[1].target_page_id == "overview"

    def test_serializable(self, result):
        payload = json.loads(result.model_dump_json())
        assert payload["report"]["pages"][0]["id"] == "overview"

    def test_deterministic(self, report_documents):
        """Input order does not change the output."""
        forward = normalize_report(MemoryFileSource(report_documents))
        backward = normalize_report(MemoryFileSource(list(reversed(list(report_documents.items())))))
        assert forward.model_dump() == backward.model_dump()

    def test_directory(self, report_dir):
        result = ReportNormalizer().normalize_directory(report_dir, max_workers=4)
        assert len(result.report.pages) == 2
        assert result.report.visual_count == 3


class TestDegradedInput:
    """Tests for partial and malformed document sets."""

    def test_missing_report_root(self, report_documents):
        """Pages are still populated when report.json is absent."""
        del report_documents["definition/report.json"]
        result = normalize_report(MemoryFileSource(report_documents))
        assert result.root_missing
        assert not result.ok
        assert len(result.report.pages) == 2
        assert result.report.schema_version == "2.0.0"
        assert result.report.theme is None

    def test_unparseable_document(self, report_documents):
        report_documents["definition/pages/overview/visuals/chart1/visual.json"] = "{not json"
        result = normalize_report(MemoryFileSource(report_documents))
        assert len(result.errors) == 1
        assert result.errors[0].path.endswith("chart1/visual.json")
        assert result.errors[0].message.startswith("Error parsing document")
        assert result.report.get_page("overview").visual_count == 1

    def test_orphan_visual_synthesizes_page(self, report_documents):
        report_documents["definition/pages/extra/visuals/v9/visual.json"] = json.dumps(CARD_VISUAL)
        result = normalize_report(MemoryFileSource(report_documents))
        page = result.report.get_page("extra")
        assert page.synthesized
        assert page.visual_count == 1
        assert any("page synthesized from 1 visual" in w.message for w in result.warnings)
        # unlisted pages follow the listed ones
        assert result.report.pages[-1].id == "extra"

    def test_unknown_id_collision(self):
        documents = {
            "definition/report.json": "{}",
            "definition/pages/page.json": json.dumps(dict(OVERVIEW_PAGE, displayName="First")),
            "pages/page.json": json.dumps(dict(OVERVIEW_PAGE, displayName="Second")),
        }
        result = normalize_report(MemoryFileSource(documents))
        collisions = [w for w in result.warnings if "collide" in w.message]
        assert len(collisions) == 1
        assert "2 page path(s)" in collisions[0].message
        assert [p.display_name for p in result.report.pages] == ["First"]

    def test_validation_warnings(self, report_documents):
        report_documents["definition/pages/overview/page.json"] = json.dumps({"name": "overview"})
        result = ReportNormalizer(validator=RequiredKeysValidator()).normalize(MemoryFileSource(report_documents))
        assert len(result.warnings) == 1
        assert "Missing required field: displayName" in result.warnings[0].message
        # the document is still used
        assert result.report.get_page("overview").display_name == "overview"

    def test_failing_validator(self, report_documents):
        def explode(data, schema_name):
            raise RuntimeError("boom")

        result = ReportNormalizer(validator=explode).normalize(MemoryFileSource(report_documents))
        assert len(result.warnings) == len(report_documents)
        assert result.report.visual_count == 3

    def test_empty_source(self):
        result = normalize_report(MemoryFileSource({}))
        assert result.root_missing
        assert result.report.pages == []


MALFORMED_DOCUMENTS = [
    ("definition/pages/p1/page.json", {"name": "p1", "filterConfig": {"filters": 5}}),
    ("definition/pages/p1/visuals/v1/visual.json", {"name": "v1", "visual": {"objects": {"title": 5}}}),
    ("definition/pages/p1/visuals/v1/visual.json", {"name": "v1", "position": {"tabOrder": 1e999}}),
    ("definition/pages/p1/visuals/v1/visual.json", {"name": "v1", "position": {"x": float("nan")}}),
    ("definition/pages/pages.json", {"pages": 5}),
    ("definition/reportExtensions.json", {"entities": 5}),
    ("definition/reportExtensions.json", {"entities": [{"name": 1, "measures": [{"name": "m", "expression": 2}]}]}),
    ("definition/bookmarks/bookmarks.json", {"items": [{"name": "g", "children": 5}]}),
    ("definition/bookmarks/b1.bookmark.json", {"name": "b1", "displayName": 3, "explorationState": 5}),
    ("definition/report.json", {"themeCollection": {"baseTheme": {"name": 5}}, "publicCustomVisuals": "x"}),
]


class TestMalformedDocuments:
    """Valid JSON of an unexpected shape never aborts the run."""

    @pytest.mark.parametrize("path,data", MALFORMED_DOCUMENTS)
    def test_run_completes(self, report_documents, path, data):
        report_documents[path] = json.dumps(data)
        result = normalize_report(MemoryFileSource(report_documents))
        assert result.errors == []
        # the rest of the report is unaffected
        assert result.report.get_page("overview").get_visual("chart1").display_name == "Revenue Trend"
        assert result.report.get_page("details").visual_count == 1

    def test_failing_visual_is_skipped(self, report_documents, monkeypatch):
        """A visual whose normalization raises is recorded and dropped."""
        original = stage_report.normalize_visual

        def fail_on_chart(visual_id, *args, **kwargs):
            if visual_id == "chart1":
                raise ValueError("bad container")
            return original(visual_id, *args, **kwargs)

        monkeypatch.setattr(stage_report, "normalize_visual", fail_on_chart)
        result = normalize_report(MemoryFileSource(report_documents))
        skipped = [w for w in result.warnings if w.message.startswith("Document skipped")]
        assert len(skipped) == 1
        assert skipped[0].path.endswith("chart1/visual.json")
        assert [v.id for v in result.report.get_page("overview").visuals] == ["44929275ab"]

    def test_failing_page_is_synthesized(self, report_documents, monkeypatch):
        """A page whose normalization raises keeps its visuals."""
        original = stage_report.normalize_page

        def fail_on_document(page_id, data, *args, **kwargs):
            if page_id == "details" and data is not None:
                raise ValueError("bad page")
            return original(page_id, data, *args, **kwargs)

        monkeypatch.setattr(stage_report, "normalize_page", fail_on_document)
        result = normalize_report(MemoryFileSource(report_documents))
        page = result.report.get_page("details")
        assert page.synthesized
        assert page.visual_count == 1
        assert any(w.message == "Document skipped: bad page" for w in result.warnings)


class TestDefaultValidator:
    def test_required_keys_checked_by_default(self):
        """Without an injected validator the required-keys check still runs."""
        documents = {
            "definition/report.json": json.dumps({"themeCollection": {}}),
            "definition/pages/p1/page.json": json.dumps({"name": "p1"}),
        }
        result = normalize_report(MemoryFileSource(documents))
        assert len(result.warnings) == 1
        assert result.warnings[0].path == "definition/pages/p1/page.json"
        assert "Missing required field: displayName" in result.warnings[0].message

class TestMergeSections:
    def test_never_overwrites(self):
        merged = merge_sections({"a": 1, "b": None}, {"a": 2, "b": 3, "c": []}, {"c": [4]})
        assert merged == {"a": 1, "b": 3, "c": [4]}
