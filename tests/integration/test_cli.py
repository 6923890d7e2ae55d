"""Integration tests for the command line entry point."""

import argparse
import json

import pytest
from PIL import Image

from imagekit.cli import main, parse_args, parse_size
from imagekit.utils.logging import LogConfig


@pytest.fixture
def workspace(temp_dir, monkeypatch):
    """Working directory with a config file pointing every disk into it."""
    monkeypatch.chdir(temp_dir)
    for name in ('IMAGEKIT_DISK', 'IMAGEKIT_DEFAULT_SAVED_PATH', 'IMAGEKIT_MAX_FILE_SIZE',
                 'IMAGEKIT_NAMING_STRATEGY', 'IMAGEKIT_COMPRESSION_QUALITY', 'IMAGEKIT_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    (temp_dir / 'imagekit.json').write_text(json.dumps({'storage': {'base_path': str(temp_dir)}}))
    Image.new('RGB', (640, 480), (10, 120, 200)).save(temp_dir / 'photo.jpg')
    yield temp_dir
    LogConfig.reset()
    LogConfig.setup_logging(level="OFF")


def run_cli(capsys, *argv):
    code = main(['--log-level', 'OFF', *argv])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestParseSize:

    @pytest.mark.parametrize('value, expected', [
        ('800x600', (800, 600)),
        ('800x', (800, None)),
        ('x600', (None, 600)),
        ('800X600', (800, 600)),
    ])
    def test_valid(self, value, expected):
        assert parse_size(value) == expected

    @pytest.mark.parametrize('value', ['800', 'widexhigh'])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_size(value)

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestSave:

    def test_save_prints_projection(self, workspace, capsys):
        code, out, _ = run_cli(
            capsys, 'save', 'photo.jpg', '--name', 'Cover Photo', '--resize', '320x', '--sizes', 'small',
            '--keys', 'name', 'full_path', 'width', 'height',
        )

        assert code == 0
        assert json.loads(out) == {
            'name': 'cover-photo.jpg',
            'full_path': 'uploads/images/cover-photo.jpg',
            'width': 320,
            'height': 240,
        }
        public_root = workspace / 'storage' / 'app' / 'public' / 'uploads' / 'images'
        assert (public_root / 'cover-photo.jpg').is_file()
        assert (public_root / 'small_cover-photo.jpg').is_file()

    def test_default_output_is_name(self, workspace, capsys):
        code, out, _ = run_cli(capsys, 'save', 'photo.jpg', '--path', 'misc', '--no-compress')

        assert code == 0
        assert json.loads(out).endswith('.jpg')

    def test_disk_option(self, workspace, capsys):
        code, out, _ = run_cli(capsys, '--disk', 'local', 'save', 'photo.jpg', '--name', 'private', '--keys', 'disk')

        assert code == 0
        assert json.loads(out) == 'local'
        assert (workspace / 'storage' / 'app' / 'uploads' / 'images' / 'private.jpg').is_file()

    def test_validation_error_exits_nonzero(self, workspace, capsys):
        code, out, err = run_cli(capsys, 'save', 'photo.jpg', '--quality', '150')

        assert code == 1
        assert out == ''
        assert 'Error: Compression ratio must be between 0 and 100' in err

    def test_missing_file(self, workspace, capsys):
        code, _, err = run_cli(capsys, 'save', 'nope.jpg')

        assert code == 1
        assert 'Invalid image file provided.' in err


class TestDelete:

    def test_delete(self, workspace, capsys):
        run_cli(capsys, 'save', 'photo.jpg', '--name', 'gone', '--sizes', 'small')

        code, out, _ = run_cli(capsys, 'delete', 'gone.jpg', '--sizes', 'small')

        assert code == 0
        assert json.loads(out) == {'deleted': True}
        public_root = workspace / 'storage' / 'app' / 'public' / 'uploads' / 'images'
        assert not (public_root / 'gone.jpg').exists()
        assert not (public_root / 'small_gone.jpg').exists()

    def test_delete_missing(self, workspace, capsys):
        code, out, _ = run_cli(capsys, 'delete', 'ghost.jpg', '--path', 'uploads/images')

        assert code == 0
        assert json.loads(out) == {'deleted': False}
