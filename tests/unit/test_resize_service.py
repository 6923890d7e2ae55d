"""Unit tests for ResizeService."""

import pytest

from conftest import image_bytes, open_image
from imagekit.exceptions import InvalidInput
from imagekit.models import Dimensions
from imagekit.services import ResizeService


@pytest.fixture
def resizer(test_config, disks):
    return ResizeService(test_config, disks)


@pytest.fixture
def stored(public_disk):
    public_disk.put('uploads/photo.jpg', image_bytes((1200, 800)))
    return 'uploads/photo.jpg'


class TestSetDimensionsImage:

    def test_fits_inside_box(self, resizer, stored, public_disk):
        assert resizer.set_dimensions_image(stored, Dimensions(800, 600)) is True
        assert open_image(public_disk.get(stored)).size == (800, 533)

    def test_width_only(self, resizer, stored, public_disk):
        resizer.set_dimensions_image(stored, Dimensions(600, None))
        assert open_image(public_disk.get(stored)).size == (600, 400)

    def test_height_only(self, resizer, stored, public_disk):
        resizer.set_dimensions_image(stored, Dimensions(None, 200))
        assert open_image(public_disk.get(stored)).size == (300, 200)

    def test_stretch_without_aspect_ratio(self, resizer, stored, public_disk):
        resizer.set_dimensions_image(stored, Dimensions(500, 500), aspect_ratio=False)
        assert open_image(public_disk.get(stored)).size == (500, 500)

    def test_preserves_container(self, resizer, public_disk):
        public_disk.put('uploads/logo.png', image_bytes((400, 400), image_format='PNG'))

        resizer.set_dimensions_image('uploads/logo.png', Dimensions(100, 100))

        img = open_image(public_disk.get('uploads/logo.png'))
        assert img.format == 'PNG'
        assert img.size == (100, 100)

    @pytest.mark.parametrize('dimensions', [None, Dimensions(), Dimensions(0, 0)])
    def test_empty_box_is_noop(self, resizer, stored, public_disk, dimensions):
        before = public_disk.get(stored)

        assert resizer.set_dimensions_image(stored, dimensions) is False
        assert public_disk.get(stored) == before

    def test_missing_image(self, resizer):
        with pytest.raises(InvalidInput, match='does not exist'):
            resizer.set_dimensions_image('uploads/missing.jpg', Dimensions(100, 100))


class TestResizeImage:

    def test_writes_labelled_copies(self, resizer, stored, public_disk):
        resizer.resize_image('uploads', 'photo.jpg', ['small', 'medium'])

        assert open_image(public_disk.get('uploads/small_photo.jpg')).size == (300, 200)
        assert open_image(public_disk.get('uploads/medium_photo.jpg')).size == (600, 400)
        assert not public_disk.exists('uploads/large_photo.jpg')
        assert open_image(public_disk.get(stored)).size == (1200, 800)

    def test_small_images_are_scaled_to_box(self, resizer, public_disk):
        public_disk.put('uploads/tiny.jpg', image_bytes((100, 50)))

        resizer.resize_image('uploads', 'tiny.jpg', ['small'])

        assert open_image(public_disk.get('uploads/small_tiny.jpg')).size == (300, 150)

    def test_unknown_label(self, resizer, stored):
        with pytest.raises(InvalidInput, match="Size 'huge' is not defined"):
            resizer.resize_image('uploads', 'photo.jpg', ['huge'])

    def test_incomplete_size_definition(self, resizer, stored, test_config):
        test_config.processing.multi_size_dimensions['banner'] = Dimensions(1200, None)

        with pytest.raises(InvalidInput, match="size 'banner' must be defined"):
            resizer.resize_image('uploads', 'photo.jpg', ['banner'])

    def test_missing_original(self, resizer):
        with pytest.raises(InvalidInput, match='Original image file does not exist'):
            resizer.resize_image('uploads', 'missing.jpg', ['small'])

    def test_uses_active_disk(self, resizer, disks):
        disks.disk('local').put('private/photo.jpg', image_bytes((1200, 800)))

        resizer.set_disk('local').resize_image('private', 'photo.jpg', ['small'])

        assert disks.disk('local').exists('private/small_photo.jpg')
