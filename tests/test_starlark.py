from bundlegen.starlark import (
    Genrule,
    Glob,
    Load,
    Package,
    PkgTar,
    RubyLibrary,
    quote,
    render,
    render_file,
    render_value,
)


def test_quote_escapes_backslashes_and_quotes() -> None:
    assert quote('say "hi"') == '"say \\"hi\\""'
    assert quote("a\\b") == '"a\\\\b"'


def test_short_lists_stay_inline_and_long_lists_wrap() -> None:
    assert render_value([]) == "[]"
    assert render_value([":a-gem-install", ":b-gem-install"]) == '[":a-gem-install", ":b-gem-install"]'

    names = [f":gem-number-{index}-gem-install" for index in range(4)]
    assert render_value(names, depth=1) == (
        "[\n"
        '        ":gem-number-0-gem-install",\n'
        '        ":gem-number-1-gem-install",\n'
        '        ":gem-number-2-gem-install",\n'
        '        ":gem-number-3-gem-install",\n'
        "    ]"
    )


def test_multiline_strings_render_as_indented_block() -> None:
    rendered = render_value("echo a\\b\n\nls \"$@\"\n", depth=1)

    assert rendered == '"""\n        echo a\\\\b\n\n        ls "$@"\n    """'


def test_embedded_triple_quotes_are_escaped() -> None:
    rendered = render_value('x\n"""\n', depth=0)

    assert '\\"\\"\\"' in rendered
    assert rendered.count('"""') == 2


def test_load_and_package_collapse_to_one_line() -> None:
    assert render(Load(module="@rules_pkg//:pkg.bzl", symbols=("pkg_tar",))) == (
        'load("@rules_pkg//:pkg.bzl", "pkg_tar")'
    )
    assert render(Package()) == 'package(default_visibility = ["//visibility:public"])'


def test_ruby_library_with_glob() -> None:
    assert render(RubyLibrary(name="bundler", srcs=Glob(include=("bundler/**/*",)))) == (
        "ruby_library(\n"
        '    name = "bundler",\n'
        "    srcs = glob(\n"
        '        include = ["bundler/**/*"],\n'
        "    ),\n"
        ")"
    )


def test_pkg_tar_omits_unset_attributes() -> None:
    rendered = render(
        PkgTar(
            name="gems-default",
            deps=(":b-gem-install",),
            owner="1000.1000",
            package_dir="/vendor/bundle/ruby/3.2.0",
        )
    )

    assert rendered == (
        "pkg_tar(\n"
        '    name = "gems-default",\n'
        '    deps = [":b-gem-install"],\n'
        '    owner = "1000.1000",\n'
        '    package_dir = "/vendor/bundle/ruby/3.2.0",\n'
        ")"
    )


def test_genrule_attribute_order_and_tools_attribute() -> None:
    rule = Genrule(
        name="b-gem-install",
        srcs=(":b-gem-fetch",),
        tools=(":a-gem-install",),
        tools_attribute="tools",
        outs=("b.tar.gz",),
        cmd="true",
        message="Installing gem: b:2",
    )

    lines = render(rule).splitlines()

    assert lines == [
        "genrule(",
        '    name = "b-gem-install",',
        '    srcs = [":b-gem-fetch"],',
        '    tools = [":a-gem-install"],',
        '    outs = ["b.tar.gz"],',
        '    cmd = "true",',
        '    message = "Installing gem: b:2",',
        '    visibility = ["//visibility:public"],',
        ")",
    ]


def test_genrule_without_tools_has_no_tools_attribute() -> None:
    rule = Genrule(name="a-gem-fetch", outs=("a-1.gem",), cmd="true", message="Fetching gem: a:1")

    assert "exec_tools" not in render(rule)


def test_render_file_separates_statements_with_blank_lines() -> None:
    content = render_file([Package(), Package()])

    assert content == (
        'package(default_visibility = ["//visibility:public"])\n'
        "\n"
        'package(default_visibility = ["//visibility:public"])\n'
    )
