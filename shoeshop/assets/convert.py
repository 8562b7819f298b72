"""Convert binary glTF containers (.glb) into glTF documents (.gltf).

The output document embeds every buffer as a base64 data URI so the .gltf is
a single self-contained file, the same layout gltf-pipeline produces.
"""

import logging
import struct
from pathlib import Path

from pygltflib import GLTF2, BufferFormat

logger = logging.getLogger(__name__)

_GLB_MAGIC = b"glTF"
_GLB_VERSION = 2
_GLB_HEADER = struct.Struct("<4sII")
_CHUNK_HEADER = struct.Struct("<II")
_CHUNK_JSON = 0x4E4F534A


class ParseError(ValueError):
    """The input is not a well-formed binary glTF container."""


def gltf_path_for(glb_path: Path) -> Path:
    return glb_path.with_suffix(".gltf")


def _check_header(data: bytes, source: Path) -> None:
    if len(data) < _GLB_HEADER.size + _CHUNK_HEADER.size:
        raise ParseError(f"{source}: file too short to be a GLB container ({len(data)} bytes)")

    magic, version, length = _GLB_HEADER.unpack_from(data, 0)
    if magic != _GLB_MAGIC:
        raise ParseError(f"{source}: bad magic {magic!r}, expected {_GLB_MAGIC!r}")
    if version != _GLB_VERSION:
        raise ParseError(f"{source}: unsupported GLB version {version}")
    if length != len(data):
        raise ParseError(f"{source}: header declares {length} bytes but file has {len(data)}")

    chunk_length, chunk_type = _CHUNK_HEADER.unpack_from(data, _GLB_HEADER.size)
    if chunk_type != _CHUNK_JSON:
        raise ParseError(f"{source}: first chunk is not JSON (type 0x{chunk_type:08X})")
    if _GLB_HEADER.size + _CHUNK_HEADER.size + chunk_length > len(data):
        raise ParseError(f"{source}: JSON chunk runs past end of file")


def save_gltf(gltf: GLTF2, output_path: Path) -> None:
    """Write a document through a temporary sibling and move it into place.

    A failed write leaves whatever was at ``output_path`` untouched.
    """
    partial = output_path.with_name(f"{output_path.name}.partial")
    try:
        gltf.save(str(partial), asset=gltf.asset)
        partial.replace(output_path)
    except Exception:
        partial.unlink(missing_ok=True)
        raise


def load_glb(glb_path: str | Path) -> GLTF2:
    """Read and validate a GLB file, raising ParseError on malformed input."""
    glb_path = Path(glb_path)
    data = glb_path.read_bytes()
    _check_header(data, glb_path)

    try:
        gltf = GLTF2().load_binary(str(glb_path))
    except Exception as e:
        raise ParseError(f"{glb_path}: {e}") from e
    if gltf is None:
        raise ParseError(f"{glb_path}: could not decode GLB container")
    return gltf


def convert_glb_to_gltf(glb_path: str | Path) -> Path:
    """Convert a .glb file to a sibling .gltf document and return its path.

    The container is fully decoded before anything is written, so a
    malformed input leaves no output behind.
    """
    glb_path = Path(glb_path)
    logger.info("Converting %s to glTF...", glb_path)

    gltf = load_glb(glb_path)
    try:
        gltf.convert_buffers(BufferFormat.DATAURI)
    except Exception as e:
        raise ParseError(f"{glb_path}: cannot embed binary buffer: {e}") from e

    output_path = gltf_path_for(glb_path)
    save_gltf(gltf, output_path)
    logger.info(
        "glTF file saved to %s (%d nodes, %d meshes, %d materials)",
        output_path, len(gltf.nodes), len(gltf.meshes), len(gltf.materials),
    )
    return output_path
