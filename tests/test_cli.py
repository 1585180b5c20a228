import numpy as np
import pytest
from PIL import Image

from rastersolid.__main__ import build_parser, main, resolve_options
from rastersolid.io.stl import read_stl, stl_size


def _write_png(path, blank=False):
    img = np.full((40, 40), 255, dtype=np.uint8)
    if not blank:
        img[10:30, 10:30] = 0
    Image.fromarray(img).save(path)
    return path


def test_writes_stl_next_to_image(tmp_path, capsys):
    png = _write_png(tmp_path / 'logo.png')
    assert main([str(png)]) == 0

    stl = tmp_path / 'logo.stl'
    assert stl.exists()
    mesh = read_stl(stl)
    assert stl.stat().st_size == stl_size(len(mesh))
    assert 'logo.stl' in capsys.readouterr().out


def test_output_and_dxf_options(tmp_path):
    png = _write_png(tmp_path / 'in.png')
    out = tmp_path / 'model.stl'
    dxf = tmp_path / 'lines.dxf'
    code = main([str(png), '-o', str(out), '--dxf', str(dxf), '--depth', '2.5',
                 '--width-mm', '80', '--level', '3'])
    assert code == 0
    size = read_stl(out).size()
    assert size[2] == pytest.approx(2.5)
    assert dxf.read_text(encoding='ascii').startswith('0\nSECTION')


def test_dxf_document_option(tmp_path):
    png = _write_png(tmp_path / 'in.png')
    dxf = tmp_path / 'doc.dxf'
    assert main([str(png), '--dxf', str(dxf), '--dxf-document']) == 0
    assert 'HEADER' in dxf.read_text()


def test_blank_image_fails_with_stage(tmp_path, capsys):
    png = _write_png(tmp_path / 'blank.png', blank=True)
    assert main([str(png)]) == 1
    err = capsys.readouterr().err
    assert err.startswith('error[R201] vectorize:')
    assert 'Traceback' not in err
    assert not (tmp_path / 'blank.stl').exists()


def test_fallback_circle_when_requested(tmp_path):
    png = _write_png(tmp_path / 'blank.png', blank=True)
    assert main([str(png), '--fallback']) == 0
    assert (tmp_path / 'blank.stl').exists()


def test_missing_image(tmp_path, capsys):
    assert main([str(tmp_path / 'nope.png')]) == 1
    assert 'error[R002] acquire:' in capsys.readouterr().err


def test_invalid_option_value(tmp_path, capsys):
    png = _write_png(tmp_path / 'in.png')
    assert main([str(png), '--threshold', '300']) == 1
    assert 'error[R901] config:' in capsys.readouterr().err


def test_usage_error_exits_with_two():
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2


def test_scale_options_are_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(['x.png', '--scale', '1', '--width-mm', '5'])


def test_config_file_with_overrides(tmp_path):
    cfg = tmp_path / 'options.yaml'
    cfg.write_text('threshold: 90\ndepth: 3\n', encoding='utf-8')
    args = build_parser().parse_args(['x.png', '--config', str(cfg), '--depth', '7',
                                      '--no-holes'])
    opts = resolve_options(args)
    assert opts.threshold == 90
    assert opts.depth == 7.0
    assert opts.preserve_holes is False


def test_smooth_and_tracer_flags():
    opts = resolve_options(build_parser().parse_args(['x.png']))
    assert opts.smooth is False and opts.tracer == 'moore'
    args = build_parser().parse_args(['x.png', '--smooth', '--tracer', 'opencv'])
    opts = resolve_options(args)
    assert opts.smooth is True
    assert opts.tracer == 'opencv'
