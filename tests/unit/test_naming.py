"""Unit tests for file naming strategies."""

import hashlib
import re
import uuid

import pytest

from imagekit.models import UploadedImage
from imagekit.utils import naming
from imagekit.utils.naming import NamingStrategy, generate_name, random_string, slugify


@pytest.fixture
def upload():
    return UploadedImage.from_bytes(b'fake image bytes', 'photo.jpg')


class TestStrategies:

    def test_default_strategy(self, upload):
        name = generate_name(upload, NamingStrategy.DEFAULT)
        assert re.fullmatch(r'image_\d+_[A-Za-z0-9]{20}', name)

    def test_uuid_strategy(self, upload):
        name = generate_name(upload, 'uuid')
        assert uuid.UUID(name).version == 4

    def test_hash_strategy(self, upload, monkeypatch):
        monkeypatch.setattr(naming.time, 'time', lambda: 1700000000.5)
        expected = hashlib.md5(b'fake image bytes' + b'1700000000').hexdigest()
        assert generate_name(upload, 'hash') == expected

    def test_timestamp_strategy(self, upload):
        name = generate_name(upload, 'timestamp')
        assert re.fullmatch(r'\d+_[A-Za-z0-9]{16}', name)

    def test_callable_strategy(self, upload):
        name = generate_name(upload, lambda image: f"custom-{image.original_name.split('.')[0]}")
        assert name == 'custom-photo'

    def test_unknown_strategy_falls_back_to_default(self, upload):
        assert NamingStrategy.parse('sequential') is NamingStrategy.DEFAULT
        assert generate_name(upload, 'sequential').startswith('image_')

    def test_parse_is_case_insensitive(self):
        assert NamingStrategy.parse('UUID') is NamingStrategy.UUID

    def test_names_never_include_extension(self, upload):
        for strategy in NamingStrategy:
            assert '.jpg' not in generate_name(upload, strategy)


class TestHelpers:

    def test_random_string_length_and_alphabet(self):
        value = random_string(32)
        assert len(value) == 32
        assert value.isalnum()

    @pytest.mark.parametrize('text, expected', [
        ('Hello World!', 'hello-world'),
        ('My_Photo 2024', 'my-photo-2024'),
        ('Café Crème', 'cafe-creme'),
        ('  --Summer--  ', 'summer'),
        ('me@example', 'me-at-example'),
        ('!!!', ''),
    ])
    def test_slugify(self, text, expected):
        assert slugify(text) == expected
