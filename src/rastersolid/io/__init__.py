"""I/O utilities for rastersolid."""

from .dxf import dxf_text, write_dxf, write_dxf_document
from .image import load_image
from .stl import read_stl, stl_bytes, write_stl

__all__ = ['dxf_text', 'write_dxf', 'write_dxf_document', 'load_image',
           'read_stl', 'stl_bytes', 'write_stl']
