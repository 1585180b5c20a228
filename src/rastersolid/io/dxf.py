"""DXF line export of shape outlines.

``dxf_text`` writes the minimal group-code/value form (a single ENTITIES
section of LINE records on layer ``0``), one record per consecutive point
pair of every outer and hole polygon.  ``write_dxf_document`` writes the
same segments as a complete drawing through ezdxf for CAD packages that
insist on a HEADER and TABLES section.

DXF puts the origin bottom left, so ``y`` is flipped against the image
height; ``z`` is always 0.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union

from rastersolid.classify import ShapeWithHoles
from rastersolid.errors import ExportWithNoModel
from rastersolid.geometry import is_closed

logger = logging.getLogger(__name__)

Segment = Tuple[float, float, float, float]


def format_number(value: float) -> str:
    """Shortest round-trip text for ``value``; integral values have no decimals."""

    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def segments(shapes: Sequence[ShapeWithHoles], image_height: float,
             *, close_loops: bool = False) -> Iterator[Segment]:
    """Yield ``(x1, y1, x2, y2)`` for each edge, Y flipped to a bottom-left origin."""

    for shape in shapes:
        for poly in shape.polygons():
            if len(poly) < 2:
                continue
            pts = [(float(p[0]), image_height - float(p[1])) for p in poly]
            if close_loops and len(pts) > 2 and not is_closed(pts):
                pts.append(pts[0])
            for (x1, y1), (x2, y2) in zip(pts, pts[1:]):
                yield x1, y1, x2, y2


def _line_record(seg: Segment) -> List[str]:
    x1, y1, x2, y2 = seg
    return [
        "0", "LINE",
        "8", "0",
        "10", format_number(x1),
        "20", format_number(y1),
        "30", "0",
        "11", format_number(x2),
        "21", format_number(y2),
        "31", "0",
    ]


def dxf_text(shapes: Sequence[ShapeWithHoles], image_height: float,
             *, close_loops: bool = False) -> str:
    """Serialize the outlines of ``shapes`` as minimal DXF text.

    Raises :class:`ExportWithNoModel` when there is nothing to draw.
    """

    if not shapes:
        raise ExportWithNoModel("there are no shapes to export as DXF")
    lines = ["0", "SECTION", "2", "ENTITIES"]
    count = 0
    for seg in segments(shapes, image_height, close_loops=close_loops):
        lines.extend(_line_record(seg))
        count += 1
    if not count:
        raise ExportWithNoModel("the shapes contain no line segments")
    lines.extend(["0", "ENDSEC", "0", "EOF"])
    logger.debug("serialized %d DXF line(s)", count)
    return "\n".join(lines) + "\n"


def write_dxf(shapes: Sequence[ShapeWithHoles], image_height: float, path_or_file,
              *, close_loops: bool = False) -> int:
    """Write minimal DXF text to a path or an open text stream."""

    text = dxf_text(shapes, image_height, close_loops=close_loops)
    if hasattr(path_or_file, 'write'):
        path_or_file.write(text)
    else:
        with open(path_or_file, 'w', encoding='ascii', newline='\n') as stream:
            stream.write(text)
        logger.info("wrote DXF outlines to %s", path_or_file)
    return len(text)


def write_dxf_document(shapes: Sequence[ShapeWithHoles], image_height: float,
                       path: Union[str, Path], *, layer: str = '0',
                       close_loops: bool = False, dxfversion: str = 'R2010') -> int:
    """Write the outline segments as a complete ezdxf drawing.

    Returns the number of LINE entities written.
    """

    import ezdxf

    if not shapes:
        raise ExportWithNoModel("there are no shapes to export as DXF")

    doc = ezdxf.new(dxfversion)
    if layer not in doc.layers:
        doc.layers.add(layer)
    msp = doc.modelspace()
    count = 0
    for x1, y1, x2, y2 in segments(shapes, image_height, close_loops=close_loops):
        msp.add_line((x1, y1, 0.0), (x2, y2, 0.0), dxfattribs={'layer': layer})
        count += 1
    if not count:
        raise ExportWithNoModel("the shapes contain no line segments")
    doc.saveas(str(path))
    logger.info("wrote %d DXF line(s) to %s", count, path)
    return count


__all__ = ['format_number', 'segments', 'dxf_text', 'write_dxf', 'write_dxf_document']
