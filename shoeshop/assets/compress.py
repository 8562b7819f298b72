"""Draco geometry compression for glTF documents.

Each triangle primitive gets a ``KHR_draco_mesh_compression`` extension that
points at a Draco bitstream appended to the document's buffer. The original
accessors are kept as an uncompressed fallback for loaders without a Draco
decoder.

Compression never fails the caller: any error produces a verbatim copy of the
input at the expected output path and a ``Fallback`` result.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

import DracoPy
import numpy as np
from pygltflib import GLTF2, BufferFormat, BufferView

from .. import config
from .convert import save_gltf

logger = logging.getLogger(__name__)

DRACO_EXTENSION = "KHR_draco_mesh_compression"
TRIANGLES = 4

# Draco numbers attributes in the order the encoder adds them: position first,
# then colors, texture coordinates and normals, then generic attributes under
# the ids they are given.
_DRACO_POSITION_ID = 0
_STANDARD_ORDER = ("colors", "tex_coord", "normals")
_GENERIC_DTYPES = (np.float32, np.uint8, np.uint16, np.uint32)

_COMPONENT_DTYPES = {
    5120: np.int8,
    5121: np.uint8,
    5122: np.int16,
    5123: np.uint16,
    5125: np.uint32,
    5126: np.float32,
}
_TYPE_WIDTHS = {"SCALAR": 1, "VEC2": 2, "VEC3": 3, "VEC4": 4, "MAT2": 4, "MAT3": 9, "MAT4": 16}


class CompressionError(Exception):
    """A document or primitive cannot be Draco compressed."""


@dataclass(frozen=True)
class DracoOptions:
    """Draco encoder settings, passed explicitly to every compression call.

    DracoPy has no quantization setting for colors or generic attributes:
    8-bit colors and integer attributes are stored as they are, float generic
    attributes losslessly. ``quantize_color_bits`` and ``quantize_generic_bits``
    are validated with the rest but do not reach the encoder.
    """

    compression_level: int = 10
    quantize_position_bits: int = 14
    quantize_normal_bits: int = 10
    quantize_texcoord_bits: int = 12
    quantize_color_bits: int = 8
    quantize_generic_bits: int = 12
    uncompressed_fallback: bool = True

    def __post_init__(self):
        if not 0 <= self.compression_level <= 10:
            raise ValueError(f"compression_level must be 0-10, got {self.compression_level}")
        for name in (
            "quantize_position_bits",
            "quantize_normal_bits",
            "quantize_texcoord_bits",
            "quantize_color_bits",
            "quantize_generic_bits",
        ):
            bits = getattr(self, name)
            if not 1 <= bits <= 30:
                raise ValueError(f"{name} must be 1-30, got {bits}")

    @classmethod
    def from_config(cls) -> DracoOptions:
        return cls(
            compression_level=config.DRACO_COMPRESSION_LEVEL,
            quantize_position_bits=config.DRACO_QUANTIZE_POSITION_BITS,
            quantize_normal_bits=config.DRACO_QUANTIZE_NORMAL_BITS,
            quantize_texcoord_bits=config.DRACO_QUANTIZE_TEXCOORD_BITS,
            quantize_color_bits=config.DRACO_QUANTIZE_COLOR_BITS,
            quantize_generic_bits=config.DRACO_QUANTIZE_GENERIC_BITS,
            uncompressed_fallback=config.DRACO_UNCOMPRESSED_FALLBACK,
        )


@dataclass(frozen=True)
class Compressed:
    output_path: Path
    primitives: int
    degraded: bool = field(default=False, init=False)


@dataclass(frozen=True)
class Fallback:
    """Compression failed; ``output_path`` holds a verbatim copy of the input."""

    output_path: Path
    reason: str
    degraded: bool = field(default=True, init=False)


CompressionResult = Compressed | Fallback


def draco_path_for(gltf_path: Path) -> Path:
    return gltf_path.with_name(f"{gltf_path.stem}-draco.gltf")


# ---------------------------------------------------------------------------
# Buffer access
# ---------------------------------------------------------------------------

def _read_accessor(gltf: GLTF2, blob: bytes, index: int) -> np.ndarray:
    """Return accessor data as a (count, width) array."""
    accessor = gltf.accessors[index]
    if accessor.sparse is not None:
        raise CompressionError(f"accessor {index} is sparse")
    if accessor.bufferView is None:
        raise CompressionError(f"accessor {index} has no buffer view")
    dtype = _COMPONENT_DTYPES.get(accessor.componentType)
    width = _TYPE_WIDTHS.get(accessor.type)
    if dtype is None or width is None:
        raise CompressionError(
            f"accessor {index} has unsupported layout {accessor.componentType}/{accessor.type}"
        )

    view = gltf.bufferViews[accessor.bufferView]
    dtype = np.dtype(dtype)
    offset = (view.byteOffset or 0) + (accessor.byteOffset or 0)
    element_size = dtype.itemsize * width
    stride = view.byteStride or element_size
    end = offset + stride * (accessor.count - 1) + element_size
    if accessor.count and end > len(blob):
        raise CompressionError(f"accessor {index} reads past the end of its buffer")

    if stride == element_size:
        data = np.frombuffer(blob, dtype=dtype, count=accessor.count * width, offset=offset)
        return data.reshape(accessor.count, width)
    rows = [
        np.frombuffer(blob, dtype=dtype, count=width, offset=offset + i * stride)
        for i in range(accessor.count)
    ]
    return np.vstack(rows) if rows else np.empty((0, width), dtype=dtype)


def _pad(blob: bytearray) -> None:
    blob.extend(b"\x00" * (-len(blob) % 4))


# ---------------------------------------------------------------------------
# Compression
# ---------------------------------------------------------------------------

def _vertex_attributes(primitive) -> dict[str, int]:
    """Map every attribute name on a primitive to its accessor index."""
    return {name: index for name, index in vars(primitive.attributes).items() if index is not None}


def _draco_attributes(
    gltf: GLTF2, source: bytes, primitive, vertex_count: int, options: DracoOptions
) -> tuple[dict, dict[str, int]]:
    """Sort a primitive's non-position attributes into DracoPy encoder arguments.

    Returns the keyword arguments for ``DracoPy.encode`` and the extension's
    attribute map, glTF attribute name -> Draco unique id.
    """
    standard = {}
    generic = {}
    for name, index in sorted(_vertex_attributes(primitive).items()):
        if name == "POSITION":
            continue
        accessor = gltf.accessors[index]
        if accessor.count != vertex_count:
            raise CompressionError(
                f"attribute {name} has {accessor.count} values for {vertex_count} vertices"
            )
        data = _read_accessor(gltf, source, index)
        if name == "NORMAL" and data.dtype == np.float32 and data.shape[1] == 3:
            standard["normals"] = (name, data)
        elif name == "TEXCOORD_0" and data.dtype == np.float32 and data.shape[1] == 2:
            standard["tex_coord"] = (name, data)
        elif name == "COLOR_0" and data.dtype == np.uint8:
            standard["colors"] = (name, data)
        elif data.dtype.type in _GENERIC_DTYPES:
            generic[name] = data
        else:
            raise CompressionError(f"attribute {name} has unsupported component type {data.dtype}")

    encoder_args = {}
    attribute_ids = {"POSITION": _DRACO_POSITION_ID}
    next_id = _DRACO_POSITION_ID + 1
    for arg in _STANDARD_ORDER:
        if arg in standard:
            name, data = standard[arg]
            encoder_args[arg] = np.ascontiguousarray(data)
            attribute_ids[name] = next_id
            next_id += 1
    if "normals" in encoder_args:
        encoder_args["normal_quantization_bits"] = options.quantize_normal_bits
    if "tex_coord" in encoder_args:
        encoder_args["tex_coord_quantization_bits"] = options.quantize_texcoord_bits

    if generic:
        encoder_args["generic_attributes"] = {}
        for name, data in generic.items():
            encoder_args["generic_attributes"][next_id] = np.ascontiguousarray(data)
            attribute_ids[name] = next_id
            next_id += 1
    return encoder_args, attribute_ids


def _compress_primitive(
    gltf: GLTF2, source: bytes, blob: bytearray, primitive, options: DracoOptions
) -> None:
    """Append a Draco bitstream for one primitive to ``blob``.

    Every vertex attribute goes into the bitstream, because the encoder
    reorders and merges vertices and a Draco-aware loader replaces all of
    the primitive's accessors with the decoded data.

    Accessors are read from ``source``, the buffer as loaded, so numpy views
    never pin the bytearray that is being grown.
    """
    mode = TRIANGLES if primitive.mode is None else primitive.mode
    if mode != TRIANGLES:
        raise CompressionError(f"primitive mode {mode} is not a triangle list")
    if DRACO_EXTENSION in (primitive.extensions or {}):
        raise CompressionError("primitive is already Draco compressed")
    if primitive.attributes.POSITION is None:
        raise CompressionError("primitive has no POSITION attribute")

    points = _read_accessor(gltf, source, primitive.attributes.POSITION).astype(np.float32)
    if primitive.indices is not None:
        indices = _read_accessor(gltf, source, primitive.indices).reshape(-1)
    else:
        indices = np.arange(len(points))
    if len(indices) == 0 or len(indices) % 3:
        raise CompressionError(f"{len(indices)} indices do not form whole triangles")
    faces = indices.astype(np.uint32).reshape(-1, 3)

    encoder_args, attribute_ids = _draco_attributes(gltf, source, primitive, len(points), options)
    try:
        encoded = DracoPy.encode(
            points,
            faces,
            quantization_bits=options.quantize_position_bits,
            compression_level=options.compression_level,
            **encoder_args,
        )
    except Exception as e:
        raise CompressionError(f"Draco encoder failed: {e}") from e

    _pad(blob)
    gltf.bufferViews.append(BufferView(buffer=0, byteOffset=len(blob), byteLength=len(encoded)))
    blob.extend(encoded)

    primitive.extensions = {
        **(primitive.extensions or {}),
        DRACO_EXTENSION: {
            "bufferView": len(gltf.bufferViews) - 1,
            "attributes": attribute_ids,
        },
    }


def _write_compressed(gltf_path: Path, output_path: Path, options: DracoOptions) -> int:
    gltf = GLTF2().load_json(str(gltf_path))
    if gltf is None:
        raise CompressionError(f"could not read {gltf_path}")
    if len(gltf.buffers) != 1:
        raise CompressionError(f"expected a single buffer, found {len(gltf.buffers)}")

    gltf.convert_buffers(BufferFormat.BINARYBLOB)
    source = bytes(gltf.binary_blob() or b"")
    blob = bytearray(source)

    primitives = [p for mesh in gltf.meshes for p in mesh.primitives]
    if not primitives:
        raise CompressionError("document has no mesh primitives")
    for primitive in primitives:
        _compress_primitive(gltf, source, blob, primitive, options)

    _pad(blob)
    gltf.buffers[0].byteLength = len(blob)
    gltf.set_binary_blob(bytes(blob))
    gltf.convert_buffers(BufferFormat.DATAURI)

    if DRACO_EXTENSION not in gltf.extensionsUsed:
        gltf.extensionsUsed.append(DRACO_EXTENSION)
    if not options.uncompressed_fallback and DRACO_EXTENSION not in gltf.extensionsRequired:
        gltf.extensionsRequired.append(DRACO_EXTENSION)

    save_gltf(gltf, output_path)
    return len(primitives)


def compress_gltf(gltf_path: str | Path, options: DracoOptions | None = None) -> CompressionResult:
    """Draco-compress a .gltf document into a sibling ``-draco.gltf`` file.

    Never raises for compression problems: on failure the input is copied
    byte-for-byte to the output path and a ``Fallback`` is returned, so the
    output file always exists.
    """
    gltf_path = Path(gltf_path)
    options = options or DracoOptions.from_config()
    output_path = draco_path_for(gltf_path)
    logger.info("Applying Draco compression to %s...", gltf_path)

    try:
        primitives = _write_compressed(gltf_path, output_path, options)
    except Exception as e:
        logger.warning("Couldn't apply Draco compression to %s: %s", gltf_path, e)
        logger.info("Using original glTF file instead.")
        shutil.copyfile(gltf_path, output_path)
        return Fallback(output_path=output_path, reason=str(e))

    logger.info("Draco compressed glTF file saved to %s (%d primitives)", output_path, primitives)
    return Compressed(output_path=output_path, primitives=primitives)
