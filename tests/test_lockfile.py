import textwrap
from pathlib import Path

import pytest

from bundlegen.errors import LockfileError, ValidationError
from bundlegen.lockfile import ParsedLockfile, parse_lockfile, read_lockfile, split_version, validate_dependencies
from bundlegen.models import LocalSource, RemoteSource


def test_lockfile_specs_keep_lockfile_order(lockfile: ParsedLockfile) -> None:
    assert lockfile.names == (
        "billing",
        "nokogiri",
        "rack",
        "rack-test",
        "racc",
        "rake",
        "rspec",
        "rspec-core",
        "rspec-support",
    )


def test_lockfile_sources_are_tagged_by_section(lockfile: ParsedLockfile) -> None:
    billing = lockfile.specs[0]
    rack = lockfile.specs[2]

    assert billing.source == LocalSource(path="engines/billing")
    assert billing.is_local
    assert rack.source == RemoteSource(url="https://rubygems.org/")
    assert not rack.is_local
    assert [spec.name for spec in lockfile.local_specs()] == ["billing"]
    assert len(lockfile.remote_specs()) == 8


def test_lockfile_dependencies_keep_names_only(lockfile: ParsedLockfile) -> None:
    by_name = {spec.name: spec for spec in lockfile.specs}

    assert by_name["rack-test"].dependencies == ("rack",)
    assert by_name["rspec"].dependencies == ("rspec-core",)
    assert by_name["rack"].dependencies == ()


def test_platform_entries_are_split_and_duplicates_set_aside(lockfile: ParsedLockfile) -> None:
    nokogiri = lockfile.specs[1]

    assert nokogiri.version == "1.15.4"
    assert nokogiri.platform == "x86_64-linux"
    assert nokogiri.gem_name == "nokogiri-1.15.4"
    assert [(spec.name, spec.platform) for spec in lockfile.duplicates] == [
        ("nokogiri", "arm64-darwin"),
    ]


def test_lockfile_metadata_sections(lockfile: ParsedLockfile) -> None:
    assert lockfile.platforms == ("arm64-darwin", "x86_64-linux")
    assert lockfile.dependencies == ("billing", "nokogiri", "rack", "rack-test", "rake", "rspec")
    assert lockfile.ruby_version == "3.2.2"
    assert lockfile.bundled_with == "2.4.19"


def test_split_version_defaults_to_ruby_platform() -> None:
    assert split_version("3.0.8") == ("3.0.8", "ruby")
    assert split_version("1.15.4-x86_64-linux") == ("1.15.4", "x86_64-linux")
    with pytest.raises(LockfileError):
        split_version("1.0-")


def test_lockfile_without_optional_sections() -> None:
    parsed = parse_lockfile(
        textwrap.dedent("""\
            GEM
              remote: https://rubygems.org/
              specs:
                rack (3.0.8)

            PLATFORMS
              ruby
        """)
    )

    assert parsed.names == ("rack",)
    assert parsed.ruby_version is None
    assert parsed.bundled_with is None
    assert parsed.duplicates == ()


def test_unknown_sections_are_ignored() -> None:
    parsed = parse_lockfile(
        textwrap.dedent("""\
            GEM
              remote: https://rubygems.org/
              specs:
                rack (3.0.8)

            CHECKSUMS
              rack (3.0.8) sha256=deadbeef
        """)
    )

    assert parsed.names == ("rack",)


def test_git_sources_are_rejected() -> None:
    raw = textwrap.dedent("""\
        GIT
          remote: https://github.com/rack/rack.git
          revision: 0123456789abcdef
          specs:
            rack (3.1.0)
    """)

    with pytest.raises(LockfileError) as excinfo:
        parse_lockfile(raw)

    assert "Git" in str(excinfo.value)
    assert excinfo.value.hint is not None


def test_malformed_spec_line_reports_line_number() -> None:
    raw = textwrap.dedent("""\
        GEM
          remote: https://rubygems.org/
          specs:
            rack 3.0.8
    """)

    with pytest.raises(LockfileError) as excinfo:
        parse_lockfile(raw)

    assert excinfo.value.context["line"] == "4"
    assert excinfo.value.code == "E_LOCKFILE"


def test_source_section_without_remote_is_rejected() -> None:
    raw = textwrap.dedent("""\
        GEM
          specs:
            rack (3.0.8)
    """)

    with pytest.raises(LockfileError):
        parse_lockfile(raw)


def test_read_lockfile_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "Gemfile.lock"

    with pytest.raises(LockfileError) as excinfo:
        read_lockfile(missing)

    assert excinfo.value.context["path"] == str(missing)


def test_validate_dependencies_accepts_bundler_runtime() -> None:
    parsed = parse_lockfile(
        textwrap.dedent("""\
            GEM
              remote: https://rubygems.org/
              specs:
                rails (7.0.8)
                  bundler (>= 1.15.0)
        """)
    )

    validate_dependencies(parsed)


def test_validate_dependencies_rejects_dangling_edges() -> None:
    parsed = parse_lockfile(
        textwrap.dedent("""\
            GEM
              remote: https://rubygems.org/
              specs:
                rack-test (2.1.0)
                  rack (>= 1.3)
        """)
    )

    with pytest.raises(ValidationError) as excinfo:
        validate_dependencies(parsed)

    assert excinfo.value.context["gem"] == "rack-test"
    assert excinfo.value.context["missing"] == "rack"
