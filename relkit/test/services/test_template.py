"""Tests for relkit.core.template and relkit.services.template modules."""

from __future__ import annotations

from pathlib import Path

from relkit.core.errors import IOFailure, UnresolvedPlaceholder
from relkit.core.result import Err, Ok
from relkit.core.template import placeholders, render
from relkit.services.template import render_file


class TestRender:
    def test_substitutes_known_names(self) -> None:
        result = render("Version: {version}, SHA256: {sha256}", {"version": "1.2.3", "sha256": "ab"})
        assert result == Ok("Version: 1.2.3, SHA256: ab")

    def test_no_placeholders_is_identity(self) -> None:
        text = "plain text\r\n  with\ttabs and { lone } braces @{ x }\n"
        assert render(text, {}) == Ok(text)

    def test_unknown_name_fails(self) -> None:
        result = render("a {version} b {sha512}", {"version": "1"})
        assert result == Err(UnresolvedPlaceholder(name="sha512"))

    def test_unused_values_are_ignored(self) -> None:
        assert render("{version}", {"version": "1", "sha256": "x"}) == Ok("1")

    def test_escaped_braces(self) -> None:
        result = render('install "${{pkgdir}}/btm" #{{version}} {version}', {"version": "1"})
        assert result == Ok('install "${pkgdir}/btm" #{version} 1')

    def test_values_are_not_rescanned(self) -> None:
        result = render("{a}", {"a": "{b}", "b": "nope"})
        assert result == Ok("{b}")

    def test_repeated_name(self) -> None:
        assert render("{v}-{v}", {"v": "x"}) == Ok("x-x")

    def test_non_identifier_braces_pass_through(self) -> None:
        text = "{ } {1abc} {a-b} {}"
        assert render(text, {}) == Ok(text)


class TestPlaceholders:
    def test_order_of_first_appearance(self) -> None:
        text = "{version} {sha256_2} {sha256_1} {version} {{literal}}"
        assert placeholders(text) == ("version", "sha256_2", "sha256_1")

    def test_none(self) -> None:
        assert placeholders("${{pkgdir}}") == ()


class TestRenderFile:
    def test_writes_output(self, tmp_path: Path) -> None:
        template = tmp_path / "t.template"
        template.write_text("pkgver={version}\n", encoding="utf-8")
        output = tmp_path / "out" / "PKGBUILD"

        result = render_file(template, output, {"version": "0.6.8"})

        assert result == Ok(output)
        assert output.read_text(encoding="utf-8") == "pkgver=0.6.8\n"

    def test_idempotent(self, tmp_path: Path) -> None:
        template = tmp_path / "t.template"
        template.write_text("{version}", encoding="utf-8")
        output = tmp_path / "out.txt"

        render_file(template, output, {"version": "1"})
        first = output.read_bytes()
        render_file(template, output, {"version": "1"})
        assert output.read_bytes() == first

    def test_crlf_preserved(self, tmp_path: Path) -> None:
        template = tmp_path / "install.ps1.template"
        template.write_bytes(b"$v = '{version}'\r\n$h = '{sha256}'\r\n")
        output = tmp_path / "install.ps1"

        render_file(template, output, {"version": "1", "sha256": "ff"})

        assert output.read_bytes() == b"$v = '1'\r\n$h = 'ff'\r\n"

    def test_unresolved_writes_nothing(self, tmp_path: Path) -> None:
        template = tmp_path / "t.template"
        template.write_text("{version} {sha256}", encoding="utf-8")
        output = tmp_path / "out.txt"

        result = render_file(template, output, {"version": "1"})

        assert result == Err(UnresolvedPlaceholder(name="sha256", template=template))
        assert not output.exists()
        assert list(tmp_path.iterdir()) == [template]

    def test_unresolved_keeps_existing_output(self, tmp_path: Path) -> None:
        template = tmp_path / "t.template"
        template.write_text("{missing}", encoding="utf-8")
        output = tmp_path / "out.txt"
        output.write_text("previous", encoding="utf-8")

        render_file(template, output, {})

        assert output.read_text(encoding="utf-8") == "previous"

    def test_missing_template(self, tmp_path: Path) -> None:
        result = render_file(tmp_path / "nope", tmp_path / "out", {})
        assert isinstance(result, Err)
        assert isinstance(result.error, IOFailure)
