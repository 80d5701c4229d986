"""Shared test fixtures."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from bundlegen.config import GeneratorConfig
from bundlegen.lockfile import ParsedLockfile, parse_lockfile

LOCKFILE = textwrap.dedent("""\
    PATH
      remote: engines/billing
      specs:
        billing (0.1.0)
          rack

    GEM
      remote: https://rubygems.org/
      specs:
        nokogiri (1.15.4-x86_64-linux)
          racc (~> 1.4)
        nokogiri (1.15.4-arm64-darwin)
          racc (~> 1.4)
        rack (3.0.8)
        rack-test (2.1.0)
          rack (>= 1.3)
        racc (1.7.1)
        rake (13.0.6)
        rspec (3.12.0)
          rspec-core (~> 3.12.0)
        rspec-core (3.12.2)
          rspec-support (~> 3.12.0)
        rspec-support (3.12.1)

    PLATFORMS
      arm64-darwin
      x86_64-linux

    DEPENDENCIES
      billing!
      nokogiri
      rack (~> 3.0)
      rack-test
      rake
      rspec

    RUBY VERSION
       ruby 3.2.2p53

    BUNDLED WITH
       2.4.19
""")

GEMFILE = textwrap.dedent("""\
    source "https://rubygems.org"

    ruby "3.2.2"

    gem "rack", "~> 3.0"
    gem "nokogiri"
    gem "billing", path: "engines/billing"
    gem "rake", group: :development

    group :test, :development do
      gem "rspec"
    end

    group :test do
      gem "rack-test", require: false
      gem "wdm", platforms: [:mingw, :x64_mingw] # windows only, not locked
    end
""")


@pytest.fixture
def lockfile() -> ParsedLockfile:
    return parse_lockfile(LOCKFILE)


@pytest.fixture
def config() -> GeneratorConfig:
    return GeneratorConfig(
        workspace_name="@rules_ruby",
        repo_name="bundle",
        ruby_version="3.2.0",
        bundler_version="2.4.19",
    )


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A directory holding Gemfile and Gemfile.lock."""
    (tmp_path / "Gemfile").write_text(GEMFILE, encoding="utf-8")
    (tmp_path / "Gemfile.lock").write_text(LOCKFILE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def gemfile_source() -> str:
    return GEMFILE


@pytest.fixture
def lockfile_source() -> str:
    return LOCKFILE
