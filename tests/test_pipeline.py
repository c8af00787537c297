"""End-to-end tests for the extraction pipeline."""

import threading
from pathlib import Path

import pytest

from core_extractor.analysis.dataset import LicenseDataset, LicenseReference
from core_extractor.analysis.matcher import LicenseMatch, sequence_match
from core_extractor.exceptions import (
    DiscoveryError,
    ExtractionCancelled,
    NoPackagesFoundError,
)
from core_extractor.models.config import (
    ExtractorConfig,
    LicenseOverride,
    PackageRewrite,
    RewriteOriginal,
)
from core_extractor.models.result import IssueKind
from core_extractor.models.verdict import LicenseVerdict, PackageStatus
from core_extractor.output.result_json import ResultJsonFormatter
from core_extractor.pipeline import ExtractionPipeline, summarize_confidence


class TestSummarizeConfidence:
    """Tests for summarize_confidence function."""

    def test_no_files(self) -> None:
        """Test that a package without files reports full confidence."""
        summary = summarize_confidence([])
        assert summary.file_count == 0
        assert summary.min_confidence == 1.0
        assert summary.mean_confidence == 1.0

    def test_aggregates(self) -> None:
        """Test min, mean and licensed count over file verdicts."""
        summary = summarize_confidence(
            [
                ("a.lua", LicenseVerdict(matched_license_id="MIT", confidence=1.0)),
                ("b.lua", LicenseVerdict(matched_license_id="MIT", confidence=0.5)),
            ]
        )
        assert summary.file_count == 2
        assert summary.licensed_file_count == 1
        assert summary.min_confidence == 0.5
        assert summary.mean_confidence == pytest.approx(0.75)


class TestExtractionPipeline:
    """Tests for ExtractionPipeline.run."""

    def test_all_included(self, raw_tree: Path, package_factory, apache_source: str) -> None:
        """Test that licensed packages with licensed dependencies are included."""
        package_factory("App", "App", dependencies=["Lib Lib 1.0.0"])
        package_factory("Lib", "Lib", files={"src/init.lua": apache_source})

        result = ExtractionPipeline().run(raw_tree)

        assert [p.status for p in result.packages] == [PackageStatus.INCLUDED] * 2
        assert result.has_issues is False
        app = result.get_package("app@1.0.0")
        assert app is not None
        assert app.licenses == ["MIT"]
        assert app.dependencies == ["lib@1.0.0"]
        lib = result.get_package("lib@1.0.0")
        assert lib is not None
        assert lib.licenses == ["Apache-2.0"]
        assert app.lines_of_code == 9
        assert lib.lines_of_code == 15

    def test_transitive_blocking(
        self, raw_tree: Path, package_factory, unlicensed_source: str
    ) -> None:
        """Test that an unlicensed package blocks every package above it."""
        package_factory("App", "App", dependencies=["Mid Mid 1.0.0"])
        package_factory("Mid", "Mid", dependencies=["Bad Bad 1.0.0"])
        package_factory("Bad", "Bad", files={"src/init.lua": unlicensed_source})

        result = ExtractionPipeline().run(raw_tree)

        statuses = {p.node_id: p.status for p in result.packages}
        assert statuses == {
            "app@1.0.0": PackageStatus.BLOCKED_BY_DEPENDENCY,
            "bad@1.0.0": PackageStatus.UNLICENSED,
            "mid@1.0.0": PackageStatus.BLOCKED_BY_DEPENDENCY,
        }
        app = result.get_package("app@1.0.0")
        bad = result.get_package("bad@1.0.0")
        assert app is not None and bad is not None
        assert app.own_files_licensed is True
        assert app.blocking_dependencies == ["mid@1.0.0"]
        assert bad.unlicensed_files == ["src/init.lua"]
        assert bad.confidence.licensed_file_count == 0
        assert result.blocking_packages == ["bad@1.0.0"]

    def test_one_unlicensed_file_is_enough(
        self, raw_tree: Path, package_factory, mit_source: str, unlicensed_source: str
    ) -> None:
        """Test that a single unlicensed file makes its package unlicensed."""
        package_factory(
            "Mixed",
            "Mixed",
            files={"src/init.lua": mit_source, "src/helper.lua": unlicensed_source},
        )

        result = ExtractionPipeline().run(raw_tree)

        mixed = result.packages[0]
        assert mixed.status == PackageStatus.UNLICENSED
        assert mixed.licenses == ["MIT"]
        assert mixed.unlicensed_files == ["src/helper.lua"]
        assert mixed.confidence.file_count == 2

    def test_external_dependency_blocks(self, raw_tree: Path, package_factory) -> None:
        """Test that a dependency outside the tree is unlicensed and blocks."""
        package_factory("App", "App", dependencies=["Gone Gone 1.0.0"])

        result = ExtractionPipeline().run(raw_tree)

        app = result.packages[0]
        assert app.status == PackageStatus.BLOCKED_BY_DEPENDENCY
        assert app.blocking_dependencies == ["gone@1.0.0"]
        assert [d.node_id for d in result.external_dependencies] == ["gone@1.0.0"]
        assert result.external_dependencies[0].required_by == ["app@1.0.0"]
        assert result.blocking_packages == ["gone@1.0.0"]

    def test_missing_version_recorded(self, raw_tree: Path, package_factory) -> None:
        """Test that an unversioned lock entry is recorded and blocks."""
        package_factory("App", "App", dependencies=["Lib Lib"])

        result = ExtractionPipeline().run(raw_tree)

        assert result.packages[0].blocking_dependencies == ["lib@?"]
        assert [i.kind for i in result.issues] == [IssueKind.GRAPH_INCONSISTENCY]

    def test_licensed_cycle_included(self, raw_tree: Path, package_factory) -> None:
        """Test that a cycle of licensed packages is included."""
        package_factory("A", "A", dependencies=["B B 1.0.0"])
        package_factory("B", "B", dependencies=["A A 1.0.0"])

        result = ExtractionPipeline().run(raw_tree)

        assert all(p.status == PackageStatus.INCLUDED for p in result.packages)
        assert result.cycles == [["a@1.0.0", "b@1.0.0"]]

    def test_cycle_blocked_as_a_whole(
        self, raw_tree: Path, package_factory, unlicensed_source: str
    ) -> None:
        """Test that a block below a cycle reaches every member."""
        package_factory("A", "A", dependencies=["B B 1.0.0"])
        package_factory("B", "B", dependencies=["A A 1.0.0", "C C 1.0.0"])
        package_factory("C", "C", files={"src/init.lua": unlicensed_source})

        result = ExtractionPipeline().run(raw_tree)

        statuses = {p.node_id: p.status for p in result.packages}
        assert statuses["a@1.0.0"] == PackageStatus.BLOCKED_BY_DEPENDENCY
        assert statuses["b@1.0.0"] == PackageStatus.BLOCKED_BY_DEPENDENCY
        assert statuses["c@1.0.0"] == PackageStatus.UNLICENSED

    def test_package_without_files_included(self, raw_tree: Path, package_factory) -> None:
        """Test that a package with no source files has nothing unlicensed."""
        package_factory("Empty", "Empty", files={"README.md": "# Empty"})

        result = ExtractionPipeline().run(raw_tree)

        empty = result.packages[0]
        assert empty.status == PackageStatus.INCLUDED
        assert empty.confidence.file_count == 0

    def test_file_override(
        self, raw_tree: Path, package_factory, unlicensed_source: str
    ) -> None:
        """Test that a configured override licenses a header-less file."""
        package_factory("Helper", "Helper", files={"src/isArray.lua": unlicensed_source})
        config = ExtractorConfig(
            file_overrides={
                "Helper/src/isArray.lua": LicenseOverride(
                    license="MIT", reason="Too small to carry a header"
                )
            }
        )

        result = ExtractionPipeline(config=config).run(raw_tree)

        helper = result.packages[0]
        assert helper.status == PackageStatus.INCLUDED
        assert helper.licenses == ["MIT"]

    def test_package_rewrite(
        self, raw_tree: Path, package_factory, unlicensed_source: str
    ) -> None:
        """Test that a rewritten dependency neither links nor blocks."""
        package_factory("App", "App", dependencies=["Promise <patched> Promise 8c520dea"])
        package_factory(
            "Promise", "Promise", "8c520dea", files={"src/init.lua": unlicensed_source}
        )
        config = ExtractorConfig(
            package_rewrites={
                "Promise": PackageRewrite(
                    new_name="evaera-promise",
                    new_version="4.0.0",
                    originals=[RewriteOriginal(name="promise", version="8c520dea")],
                )
            }
        )

        result = ExtractionPipeline(config=config).run(raw_tree)

        app = result.get_package("app@1.0.0")
        promise = result.get_package("promise@8c520dea")
        assert app is not None and promise is not None
        assert app.status == PackageStatus.INCLUDED
        assert app.dependencies == []
        assert app.replaced_dependencies == ["promise@8c520dea"]
        assert promise.replaced_by == "evaera-promise@4.0.0"
        assert result.external_dependencies == []

    def test_ambiguous_duplicates(
        self, raw_tree: Path, package_factory, unlicensed_source: str
    ) -> None:
        """Test that differing copies of one version are all depended on."""
        package_factory("App", "App", dependencies=["Dep Dep 1.0.0"])
        package_factory("Dep", "Dep", parent=raw_tree / "one")
        package_factory(
            "Dep", "Dep", parent=raw_tree / "two", files={"src/init.lua": unlicensed_source}
        )

        result = ExtractionPipeline().run(raw_tree)

        app = result.get_package("app@1.0.0")
        assert app is not None
        assert len(app.dependencies) == 2
        assert app.status == PackageStatus.BLOCKED_BY_DEPENDENCY
        assert IssueKind.AMBIGUOUS_DEPENDENCY in [i.kind for i in result.issues]

    def test_discovery_issues_surface(self, raw_tree: Path, package_factory) -> None:
        """Test that skipped packages are reported in the result."""
        package_factory("Good", "Good")
        (raw_tree / "Broken").mkdir()
        (raw_tree / "Broken" / "lock.toml").write_text("name = [")

        result = ExtractionPipeline().run(raw_tree)

        assert [p.node_id for p in result.packages] == ["good@1.0.0"]
        assert [i.kind for i in result.issues] == [IssueKind.DISCOVERY_ERROR]

    def test_dataset_drives_verdicts(self, raw_tree: Path, package_factory) -> None:
        """Test that verdicts come from the dataset given to the run."""
        package_factory("App", "App")
        dataset = LicenseDataset(
            [LicenseReference(license_id="ISC", text="Permission to use, copy, modify")]
        )

        result = ExtractionPipeline(dataset=dataset).run(raw_tree)

        assert result.packages[0].status == PackageStatus.UNLICENSED

    def test_deterministic_output(
        self, raw_tree: Path, package_factory, unlicensed_source: str
    ) -> None:
        """Test that two runs over the same tree serialize identically."""
        package_factory("App", "App", dependencies=["Mid Mid 1.0.0", "Gone Gone 2.0.0"])
        package_factory("Mid", "Mid", dependencies=["Bad Bad 1.0.0", "App App 1.0.0"])
        package_factory("Bad", "Bad", files={"src/init.lua": unlicensed_source})
        formatter = ResultJsonFormatter()

        first = formatter.format_result(ExtractionPipeline().run(raw_tree))
        second = formatter.format_result(
            ExtractionPipeline(config=ExtractorConfig(max_workers=1)).run(raw_tree)
        )

        assert first == second

    def test_empty_tree(self, raw_tree: Path) -> None:
        """Test that a tree without packages is an error."""
        with pytest.raises(NoPackagesFoundError):
            ExtractionPipeline().run(raw_tree)

    def test_all_candidates_skipped(self, raw_tree: Path) -> None:
        """Test that the error for an unreadable tree keeps discovery issues."""
        (raw_tree / "Broken").mkdir()
        (raw_tree / "Broken" / "lock.toml").write_text("name = [")

        with pytest.raises(NoPackagesFoundError) as exc_info:
            ExtractionPipeline().run(raw_tree)

        assert len(exc_info.value.skipped) == 1
        assert "1 candidate(s) skipped" in str(exc_info.value)

    def test_missing_root(self, tmp_path: Path) -> None:
        """Test that a missing root is an error."""
        with pytest.raises(DiscoveryError):
            ExtractionPipeline().run(tmp_path / "missing")


class TestCancellation:
    """Tests for pipeline cancellation."""

    def test_cancel_before_start(self, raw_tree: Path, package_factory) -> None:
        """Test that a pre-set cancel event stops before discovery."""
        package_factory("App", "App")
        event = threading.Event()
        event.set()

        with pytest.raises(ExtractionCancelled) as exc_info:
            ExtractionPipeline(cancel_event=event).run(raw_tree)
        assert exc_info.value.stage == "discover"

    def test_cancel_during_classification(self, raw_tree: Path, package_factory) -> None:
        """Test that cancelling mid-classification stops before the graph stage."""
        package_factory("App", "App")
        package_factory("Lib", "Lib")
        event = threading.Event()

        def cancelling_match(header: str, dataset: LicenseDataset) -> LicenseMatch:
            event.set()
            return sequence_match(header, dataset)

        pipeline = ExtractionPipeline(
            strategy=cancelling_match,
            cancel_event=event,
            config=ExtractorConfig(max_workers=1),
        )
        with pytest.raises(ExtractionCancelled) as exc_info:
            pipeline.run(raw_tree)
        assert exc_info.value.stage == "build_graph"

    @pytest.mark.asyncio
    async def test_run_async(self, raw_tree: Path, package_factory) -> None:
        """Test that the pipeline can run inside an event loop."""
        package_factory("App", "App")
        result = await ExtractionPipeline().run_async(raw_tree)
        assert [p.node_id for p in result.packages] == ["app@1.0.0"]
