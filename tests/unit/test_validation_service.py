"""Unit tests for ValidationService."""

from pathlib import Path

import pytest

from conftest import image_bytes
from imagekit.exceptions import InvalidInput
from imagekit.models import Dimensions, UploadedImage, WatermarkSpec
from imagekit.services import ValidationService


@pytest.fixture
def validation(test_config, disks):
    return ValidationService(test_config, disks)


class TestValidateImage:

    def test_accepts_valid_upload(self, validation, make_upload):
        validation.validate_image(make_upload('photo.jpg'))

    def test_rejects_missing_upload(self, validation):
        with pytest.raises(InvalidInput, match='Invalid image file'):
            validation.validate_image(None)

    def test_rejects_unreadable_upload(self, validation, temp_dir):
        with pytest.raises(InvalidInput, match='Invalid image file'):
            validation.validate_image(UploadedImage.from_path(temp_dir / 'missing.jpg'))

    def test_rejects_disallowed_extension(self, validation, make_upload):
        with pytest.raises(InvalidInput, match="Unsupported file extension 'gif'"):
            validation.validate_image(make_upload('anim.gif'))

    def test_extension_check_is_case_insensitive(self, validation, make_upload):
        validation.validate_image(make_upload('PHOTO.JPG'))

    def test_rejects_oversized_file(self, validation, test_config):
        test_config.validation.max_file_size = 1
        upload = UploadedImage.from_bytes(b'x' * 2048, 'big.jpg')

        with pytest.raises(InvalidInput, match='1KB'):
            validation.validate_image(upload)

    def test_rejects_oversized_pixels(self, validation, test_config, make_upload):
        test_config.validation.max_dimensions = Dimensions(width=100, height=None)

        with pytest.raises(InvalidInput, match=r'width \(200px\)'):
            validation.validate_image(make_upload('wide.png', size=(200, 50)))

    def test_rejects_tall_image(self, validation, test_config, make_upload):
        test_config.validation.max_dimensions = Dimensions(width=None, height=40)

        with pytest.raises(InvalidInput, match=r'height \(50px\)'):
            validation.validate_image(make_upload('tall.png', size=(20, 50)))

    def test_unprobeable_image_skips_dimension_check(self, validation, test_config):
        test_config.validation.max_dimensions = Dimensions(width=10, height=10)
        validation.validate_image(UploadedImage.from_bytes(b'not really an image', 'odd.jpg'))


class TestSimpleValidators:

    def test_image_name(self, validation):
        validation.validate_image_name('holiday')
        with pytest.raises(InvalidInput, match='cannot be empty'):
            validation.validate_image_name('')

    def test_extension(self, validation):
        validation.validate_extension('PNG')
        with pytest.raises(InvalidInput, match='cannot be empty'):
            validation.validate_extension('')
        with pytest.raises(InvalidInput, match="'gif'"):
            validation.validate_extension('gif')

    @pytest.mark.parametrize('path', ['uploads/images', 'images', 'a/b/c'])
    def test_valid_paths(self, validation, path):
        validation.validate_path(path)

    @pytest.mark.parametrize('path', ['', '/uploads', 'C:\\uploads', 'a/../b', 'a//b'])
    def test_invalid_paths(self, validation, path):
        with pytest.raises(InvalidInput):
            validation.validate_path(path)

    @pytest.mark.parametrize('width, height', [(None, None), (100, None), (None, '200'), (1.5, 3)])
    def test_valid_dimensions(self, validation, width, height):
        validation.validate_dimensions(width, height)

    @pytest.mark.parametrize('width, height', [('wide', None), (None, [1]), (True, 10)])
    def test_invalid_dimensions(self, validation, width, height):
        with pytest.raises(InvalidInput):
            validation.validate_dimensions(width, height)

    def test_resize_options(self, validation):
        catalog = {'small': Dimensions(300, 300)}
        validation.validate_resize_options(['small'], catalog)

        with pytest.raises(InvalidInput, match='not defined'):
            validation.validate_resize_options(['small'], {})
        with pytest.raises(InvalidInput, match="Size 'huge'"):
            validation.validate_resize_options(['small', 'huge'], catalog)

    @pytest.mark.parametrize('ratio', [None, 0, 50, 100])
    def test_valid_compression_ratio(self, validation, ratio):
        validation.validate_compression_ratio(ratio)

    @pytest.mark.parametrize('ratio', [-1, 101, 'high'])
    def test_invalid_compression_ratio(self, validation, ratio):
        with pytest.raises(InvalidInput):
            validation.validate_compression_ratio(ratio)


class TestValidateWatermark:

    def test_empty_spec_is_valid(self, validation):
        validation.validate_watermark(None)
        validation.validate_watermark({})
        validation.validate_watermark(WatermarkSpec())

    def test_requires_image(self, validation):
        with pytest.raises(InvalidInput, match='required'):
            validation.validate_watermark({'position': 'center'})

    def test_missing_asset(self, validation):
        with pytest.raises(InvalidInput, match='does not exist: missing.png'):
            validation.validate_watermark({'image_path': 'missing.png'})

    def test_asset_on_disk(self, validation, stored_watermark):
        validation.validate_watermark({'image_path': stored_watermark, 'position': 'top-left', 'opacity': 40})

    def test_public_assets_fallback(self, validation, test_config):
        asset = Path(test_config.storage.public_path) / 'brand' / 'logo.png'
        asset.parent.mkdir(parents=True)
        asset.write_bytes(image_bytes((10, 10), image_format='PNG'))

        validation.validate_watermark({'image_path': 'brand/logo.png'})

    def test_absolute_asset(self, validation, temp_dir):
        asset = temp_dir / 'wm.png'
        asset.write_bytes(image_bytes((10, 10), image_format='PNG'))

        validation.validate_watermark({'image_path': str(asset)})

    def test_uses_disk_hint(self, validation, disks):
        disks.disk('local').put('only-local.png', image_bytes((10, 10), image_format='PNG'))

        validation.validate_watermark({'image_path': 'only-local.png'}, disk='local')
        with pytest.raises(InvalidInput):
            validation.validate_watermark({'image_path': 'only-local.png'})

    def test_invalid_position(self, validation, stored_watermark):
        with pytest.raises(InvalidInput, match="position 'middle'"):
            validation.validate_watermark({'image_path': stored_watermark, 'position': 'middle'})

    @pytest.mark.parametrize('opacity', [-1, 101])
    def test_invalid_opacity(self, validation, stored_watermark, opacity):
        with pytest.raises(InvalidInput, match='opacity'):
            validation.validate_watermark({'image_path': stored_watermark, 'opacity': opacity})

    def test_negative_offset(self, validation, stored_watermark):
        with pytest.raises(InvalidInput, match='cannot be negative'):
            validation.validate_watermark({'image_path': stored_watermark, 'x': -5})
