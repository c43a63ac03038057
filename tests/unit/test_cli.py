"""Tests for the terabox CLI."""
from typer.testing import CliRunner

from teraboxpy.cli.main import app

runner = CliRunner()


def test_missing_configuration(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ('TERABOX_JSTOKEN', 'TERABOX_COOKIE', 'TERABOX_BDSTOKEN'):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / 'a.mkv'
    path.write_bytes(b'data')

    result = runner.invoke(app, ['upload', str(path)])

    assert result.exit_code == 1
    assert 'TERABOX_JSTOKEN' in result.output


def test_help_lists_commands():
    result = runner.invoke(app, ['--help'])

    assert result.exit_code == 0
    for command in ('upload', 'watch', 'quota'):
        assert command in result.output
