import io

import numpy as np
import pytest
from PIL import Image

from rastersolid.errors import InvalidSource
from rastersolid.io.image import load_image
from rastersolid.raster import PixelBuffer


def _checker():
    arr = np.zeros((4, 6, 3), dtype=np.uint8)
    arr[::2, ::2] = (255, 128, 0)
    return arr


def test_pil_image_converted_to_rgba():
    buf = load_image(Image.fromarray(_checker()))
    assert buf.data.shape == (4, 6, 4)
    assert buf.data[0, 0].tolist() == [255, 128, 0, 255]
    assert buf.data[1, 1].tolist() == [0, 0, 0, 255]


def test_png_path_and_stream(tmp_path):
    path = tmp_path / 'checker.png'
    Image.fromarray(_checker()).save(path)

    from_path = load_image(path)
    from_str = load_image(str(path))
    with open(path, 'rb') as fp:
        from_stream = load_image(io.BytesIO(fp.read()))
    assert np.array_equal(from_path.data, from_str.data)
    assert np.array_equal(from_path.data, from_stream.data)
    assert (from_path.width, from_path.height) == (6, 4)


def test_grayscale_array():
    gray = np.full((3, 3), 77, dtype=np.uint8)
    buf = load_image(gray)
    assert buf.data.shape == (3, 3, 4)
    assert buf.data[..., 0].tolist() == gray.tolist()


def test_boolean_array_and_buffer_pass_through():
    mask = np.eye(3, dtype=bool)
    buf = load_image(mask)
    assert buf.is_binary
    assert load_image(buf) is buf


def test_missing_file(tmp_path):
    with pytest.raises(InvalidSource) as excinfo:
        load_image(tmp_path / 'missing.png')
    assert excinfo.value.stage == 'acquire'


def test_undecodable_file(tmp_path):
    path = tmp_path / 'junk.png'
    path.write_bytes(b'not an image at all')
    with pytest.raises(InvalidSource):
        load_image(path)


def test_unsupported_source_type():
    with pytest.raises(InvalidSource):
        load_image(42)
