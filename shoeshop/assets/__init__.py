"""Offline 3D asset pipeline for the storefront's shoe models.

Usage:
    from shoeshop.assets import process_model, process_directory

Submodules:
    convert   : GLB → glTF with embedded data-URI buffers
    compress  : Draco compression with an explicit Compressed/Fallback result
    pipeline  : single-file and batch orchestration, CLI entry points
"""

from .compress import Compressed, CompressionResult, DracoOptions, Fallback, compress_gltf
from .convert import ParseError, convert_glb_to_gltf
from .pipeline import BatchReport, process_directory, process_model, run_model

__all__ = [
    "BatchReport",
    "Compressed",
    "CompressionResult",
    "DracoOptions",
    "Fallback",
    "ParseError",
    "compress_gltf",
    "convert_glb_to_gltf",
    "process_directory",
    "process_model",
    "run_model",
]
