import json
from pathlib import Path

import cbor2

from bundlegen.generator import BundleBuildFileGenerator
from bundlegen.report import GenerationReport


def _generate(project: Path) -> GenerationReport:
    generator = BundleBuildFileGenerator(
        workspace_name="@rules_ruby",
        repo_name="bundle",
        build_file=project / "BUILD.bazel",
        gemfile_lock=project / "Gemfile.lock",
    )
    return generator.generate().report(generator.logger)


def test_identical_runs_give_identical_reports(project: Path) -> None:
    first = _generate(project)
    second = _generate(project)

    assert first.to_json() == second.to_json()
    assert first.to_cbor() == second.to_cbor()


def test_report_records_groups_and_targets(project: Path) -> None:
    report = _generate(project)

    assert report.groups == {
        "default": ["rack", "nokogiri", "billing"],
        "development": ["rake", "rspec"],
        "test": ["rspec", "rack-test"],
    }
    assert report.targets[0] == "billing-gem-install"
    assert report.targets[-3:] == ("gems-default", "gems-development", "gems-test")
    assert report.target_platform == "x86_64-linux"


def test_write_picks_format_from_suffix(project: Path, tmp_path: Path) -> None:
    report = _generate(project)

    json_path = report.write(tmp_path / "reports" / "run.json")
    cbor_path = report.write(tmp_path / "reports" / "run.cbor")

    from_json = json.loads(json_path.read_text(encoding="utf-8"))
    from_cbor = cbor2.loads(cbor_path.read_bytes())
    assert from_json == from_cbor
    assert from_json["content_digest"] == report.content_digest
