import base64
import json
import os
import struct
import tempfile
from pathlib import Path

# Keep the default data dir out of the working tree.
os.environ.setdefault("SHOESHOP_DATA_DIR", tempfile.mkdtemp(prefix="shoeshop-test-"))

import numpy as np
import pytest
import trimesh

from shoeshop import db


def read_glb_json(path: Path) -> dict:
    """Decode the JSON chunk of a GLB file without going through pygltflib."""
    data = path.read_bytes()
    chunk_length, _ = struct.unpack_from("<II", data, 12)
    return json.loads(data[20:20 + chunk_length])


def write_gltf(
    path: Path,
    positions: np.ndarray,
    mode: int = 4,
    indices: np.ndarray | None = None,
    attributes: dict[str, np.ndarray] | None = None,
) -> Path:
    """Write a single-primitive glTF with an embedded buffer.

    ``attributes`` maps extra attribute names (NORMAL, TEXCOORD_0, ...) to
    per-vertex arrays; float arrays are stored as FLOAT, integer ones keep
    their dtype.
    """
    component_types = {np.float32: 5126, np.uint8: 5121, np.int8: 5120, np.uint16: 5123, np.uint32: 5125}
    vec_types = {1: "SCALAR", 2: "VEC2", 3: "VEC3", 4: "VEC4"}

    blob = bytearray()
    accessors = []
    views = []

    def add(array, with_bounds=False):
        if array.dtype.kind == "f":
            array = array.astype(np.float32)
        array = np.ascontiguousarray(array)
        blob.extend(b"\x00" * (-len(blob) % 4))
        views.append({"buffer": 0, "byteOffset": len(blob), "byteLength": array.nbytes})
        blob.extend(array.tobytes())
        accessor = {
            "bufferView": len(views) - 1,
            "componentType": component_types[array.dtype.type],
            "count": len(array),
            "type": vec_types[1 if array.ndim == 1 else array.shape[1]],
        }
        if with_bounds:
            accessor["min"] = array.min(axis=0).tolist()
            accessor["max"] = array.max(axis=0).tolist()
        accessors.append(accessor)
        return len(accessors) - 1

    primitive = {"attributes": {"POSITION": add(positions, with_bounds=True)}, "mode": mode}
    for name, values in (attributes or {}).items():
        primitive["attributes"][name] = add(values)
    if indices is not None:
        primitive["indices"] = add(np.asarray(indices, dtype=np.uint32).reshape(-1))

    blob.extend(b"\x00" * (-len(blob) % 4))
    doc = {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [{"primitives": [primitive]}],
        "accessors": accessors,
        "bufferViews": views,
        "buffers": [
            {
                "byteLength": len(blob),
                "uri": "data:application/octet-stream;base64," + base64.b64encode(bytes(blob)).decode(),
            }
        ],
    }
    path.write_text(json.dumps(doc))
    return path


def split_normal_box(size: float = 0.2):
    """A cube with one normal per face: each corner position appears three times."""
    half = size / 2
    positions, normals, uvs, indices = [], [], [], []
    for axis in range(3):
        for sign in (1.0, -1.0):
            normal = np.zeros(3)
            normal[axis] = sign
            u_axis, v_axis = [a for a in range(3) if a != axis]
            base = len(positions)
            for u, v in ((0, 0), (1, 0), (1, 1), (0, 1)):
                corner = np.zeros(3)
                corner[axis] = sign * half
                corner[u_axis] = (u - 0.5) * size
                corner[v_axis] = (v - 0.5) * size
                positions.append(corner)
                normals.append(normal)
                uvs.append((u, v))
            indices += [base, base + 1, base + 2, base, base + 2, base + 3]
    return (
        np.array(positions, dtype=np.float32),
        np.array(normals, dtype=np.float32),
        np.array(uvs, dtype=np.float32),
        np.array(indices, dtype=np.uint32),
    )


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "products.sqlite"


@pytest.fixture
def conn(db_path):
    conn = db.get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def shoe_mesh():
    return trimesh.creation.box(extents=(0.3, 0.1, 0.12))


@pytest.fixture
def box_glb(tmp_path, shoe_mesh):
    path = tmp_path / "shoe1.glb"
    path.write_bytes(shoe_mesh.export(file_type="glb"))
    return path


@pytest.fixture
def scene_glb(tmp_path):
    scene = trimesh.Scene()
    scene.add_geometry(trimesh.creation.box(extents=(0.3, 0.02, 0.12)), node_name="sole")
    scene.add_geometry(trimesh.creation.icosphere(subdivisions=2, radius=0.05), node_name="toe")
    path = tmp_path / "shoe2.glb"
    path.write_bytes(scene.export(file_type="glb"))
    return path


@pytest.fixture
def box_normals_gltf(tmp_path):
    positions, normals, uvs, indices = split_normal_box()
    return write_gltf(
        tmp_path / "shoe4.gltf",
        positions,
        indices=indices,
        attributes={"NORMAL": normals, "TEXCOORD_0": uvs},
    )


@pytest.fixture
def sphere_normals_gltf(tmp_path):
    sphere = trimesh.creation.icosphere(subdivisions=2, radius=0.05)
    positions = np.asarray(sphere.vertices, dtype=np.float32)
    normals = positions / np.linalg.norm(positions, axis=1, keepdims=True)
    uvs = np.column_stack([
        0.5 + np.arctan2(normals[:, 2], normals[:, 0]) / (2 * np.pi),
        0.5 - np.arcsin(normals[:, 1]) / np.pi,
    ])
    return write_gltf(
        tmp_path / "shoe5.gltf",
        positions,
        indices=np.asarray(sphere.faces),
        attributes={"NORMAL": normals, "TEXCOORD_0": uvs},
    )
