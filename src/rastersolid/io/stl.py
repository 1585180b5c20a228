"""Binary STL export and import.

Layout (little-endian): an 80-byte zero header, a ``uint32`` triangle count,
then 50 bytes per triangle: normal and three vertices as ``float32`` triples
followed by a ``uint16`` attribute word (always 0).  A file holding ``N``
triangles is exactly ``84 + 50 * N`` bytes long.
"""

from __future__ import annotations

import io
import logging
import struct
from typing import List

from rastersolid.errors import ExportWithNoModel
from rastersolid.geometry_utils import Triangle3D, winding_normal
from rastersolid.mesh import Mesh

logger = logging.getLogger(__name__)

HEADER_SIZE = 80
RECORD_SIZE = 50
_STRUCT_COUNT = struct.Struct('<I')
_STRUCT_TRIANGLE = struct.Struct('<12fH')


def stl_size(triangle_count: int) -> int:
    return HEADER_SIZE + _STRUCT_COUNT.size + RECORD_SIZE * triangle_count


def _write_binary(mesh: Mesh, stream) -> None:
    stream.write(bytes(HEADER_SIZE))
    stream.write(_STRUCT_COUNT.pack(len(mesh)))
    for tri in mesh:
        normal = tri.normal
        if normal is None:
            normal = winding_normal(tri.v0, tri.v1, tri.v2)
        stream.write(_STRUCT_TRIANGLE.pack(*normal, *tri.v0, *tri.v1, *tri.v2, 0))


def stl_bytes(mesh: Mesh) -> bytes:
    """Serialize ``mesh`` to binary STL.

    Raises :class:`ExportWithNoModel` for an empty mesh.
    """

    if mesh is None or not len(mesh):
        raise ExportWithNoModel("there is no model to export as STL")
    buf = io.BytesIO()
    _write_binary(mesh, buf)
    return buf.getvalue()


def write_stl(mesh: Mesh, path_or_file) -> int:
    """Write ``mesh`` to a path or an open binary stream; return bytes written."""

    data = stl_bytes(mesh)
    if hasattr(path_or_file, 'write'):
        path_or_file.write(data)
    else:
        with open(path_or_file, 'wb') as stream:
            stream.write(data)
        logger.info("wrote %d triangles to %s", len(mesh), path_or_file)
    return len(data)


def _parse_binary_stl(data: bytes) -> List[Triangle3D]:
    if len(data) < HEADER_SIZE + _STRUCT_COUNT.size:
        raise ValueError("Invalid binary STL: file too small")

    tri_count = _STRUCT_COUNT.unpack_from(data, HEADER_SIZE)[0]
    if len(data) < stl_size(tri_count):
        raise ValueError(
            f"Invalid binary STL: expected {stl_size(tri_count)} bytes, got {len(data)}")

    triangles = []
    offset = HEADER_SIZE + _STRUCT_COUNT.size
    for _ in range(tri_count):
        values = _STRUCT_TRIANGLE.unpack_from(data, offset)
        triangles.append(Triangle3D(
            v0=(values[3], values[4], values[5]),
            v1=(values[6], values[7], values[8]),
            v2=(values[9], values[10], values[11]),
            normal=(values[0], values[1], values[2]),
        ))
        offset += RECORD_SIZE
    return triangles


def read_stl(path_or_file) -> Mesh:
    """Read a binary STL file into a :class:`Mesh`.

    ``path_or_file`` can be a filesystem path, an open binary stream, or the
    raw bytes.
    """

    if isinstance(path_or_file, (bytes, bytearray)):
        data = bytes(path_or_file)
    elif hasattr(path_or_file, 'read'):
        data = path_or_file.read()
    else:
        with open(path_or_file, 'rb') as f:
            data = f.read()
    return Mesh.from_triangles(_parse_binary_stl(data))


__all__ = ['HEADER_SIZE', 'RECORD_SIZE', 'stl_size', 'stl_bytes', 'write_stl', 'read_stl']
