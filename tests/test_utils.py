"""Unit tests for subprocess helpers and azd output parsing."""

from __future__ import annotations

import subprocess

import pytest

from apim_ops._utils import ensure, parse_env_lines, run_logged


def _completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


class TestRunLogged:
    def test_returns_completed_process(self, monkeypatch):
        monkeypatch.setattr(
            "apim_ops._utils.subprocess.run",
            lambda args, **kw: _completed(args, stdout="ok\n"),
        )
        result = run_logged(["az", "version"], capture_output=True, echo="never")
        assert result.stdout == "ok\n"

    def test_raises_on_failure_when_checked(self, monkeypatch):
        monkeypatch.setattr(
            "apim_ops._utils.subprocess.run",
            lambda args, **kw: _completed(args, returncode=2, stderr="bad"),
        )
        with pytest.raises(subprocess.CalledProcessError) as excinfo:
            run_logged(["az", "x"], capture_output=True, echo="never")
        assert excinfo.value.returncode == 2
        assert excinfo.value.stderr == "bad"

    def test_unchecked_failure_returns(self, monkeypatch):
        monkeypatch.setattr(
            "apim_ops._utils.subprocess.run",
            lambda args, **kw: _completed(args, returncode=1),
        )
        assert run_logged(["az"], capture_output=True, check=False).returncode == 1

    def test_echo_on_error_mirrors_output(self, monkeypatch, capsys):
        """
        Given a command that fails with stderr output
        When run_logged is called with echo="on_error"
        Then the stderr text is mirrored to our stderr
        """
        monkeypatch.setattr(
            "apim_ops._utils.subprocess.run",
            lambda args, **kw: _completed(args, returncode=1, stderr="ERROR: nope\n"),
        )
        run_logged(["az"], capture_output=True, check=False, echo="on_error")
        assert "ERROR: nope" in capsys.readouterr().err

    def test_echo_on_error_silent_on_success(self, monkeypatch, capsys):
        monkeypatch.setattr(
            "apim_ops._utils.subprocess.run",
            lambda args, **kw: _completed(args, stdout="secret\n"),
        )
        run_logged(["az"], capture_output=True, echo="on_error")
        assert capsys.readouterr().out == ""


class TestEnsure:
    def test_missing_command_exits_1(self, monkeypatch, capsys):
        monkeypatch.setattr("apim_ops._utils.shutil.which", lambda name: None)
        with pytest.raises(SystemExit) as excinfo:
            ensure(["az"])
        assert excinfo.value.code == 1
        assert "missing dependency: az" in capsys.readouterr().err

    def test_present_commands_pass(self, monkeypatch):
        monkeypatch.setattr("apim_ops._utils.shutil.which", lambda name: f"/usr/bin/{name}")
        ensure(["az", "azd"])


class TestParseEnvLines:
    def test_quoted_values(self):
        raw = 'AZURE_APIM_NAME="myapim"\nAZURE_RESOURCE_GROUP="rg-dev"\n'
        assert parse_env_lines(raw) == {
            "AZURE_APIM_NAME": "myapim",
            "AZURE_RESOURCE_GROUP": "rg-dev",
        }

    def test_escaped_quotes_and_spaces(self):
        raw = 'GREETING="say \\"hi\\" there"\n'
        assert parse_env_lines(raw) == {"GREETING": 'say "hi" there'}

    def test_empty_and_unquoted_values(self):
        raw = 'EMPTY=""\nPLAIN=value\n'
        assert parse_env_lines(raw) == {"EMPTY": "", "PLAIN": "value"}

    def test_value_containing_equals(self):
        raw = 'CONN="Endpoint=sb://x;Key=abc="\n'
        assert parse_env_lines(raw) == {"CONN": "Endpoint=sb://x;Key=abc="}

    def test_skips_comments_blank_and_invalid_lines(self):
        raw = "# comment\n\nnot a pair\nexport A=1\n"
        assert parse_env_lines(raw) == {"A": "1"}

    def test_unbalanced_quote_keeps_raw(self):
        assert parse_env_lines('BROKEN="abc\n') == {"BROKEN": '"abc'}

    def test_later_keys_win(self):
        assert parse_env_lines("A=1\nA=2\n") == {"A": "2"}

    def test_trailing_comment_dropped(self):
        assert parse_env_lines("KEY=abc #note\n") == {"KEY": "abc"}

    def test_hash_inside_quotes_kept(self):
        assert parse_env_lines('KEY="abc #not-a-comment"\n') == {"KEY": "abc #not-a-comment"}
