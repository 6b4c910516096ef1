"""Curtain wall mesh generation and export.

A curtain is a vertical strip following a boundary polyline: every boundary
vertex contributes a top and a bottom vertex, and every segment between two
consecutive vertices becomes a quad made of two triangles.
"""

import logging
import pathlib

import numpy as np
import trimesh
from trimesh.visual.material import PBRMaterial

from .models import CurtainMesh, PathManager

logger = logging.getLogger(__name__)

CURTAIN_OPACITY = 0.7

_EXPORT_TYPES = {'.glb': 'glb', '.stl': 'stl', '.ply': 'ply'}


def build_curtain_mesh(local_points, top_z: float, bottom_z: float,
                       closed: bool) -> CurtainMesh:
    """Build a wall mesh hanging from ``top_z`` down to ``bottom_z``.

    Parameters
    ----------
    local_points : sequence of (x, y) — boundary vertices in local metres
    top_z, bottom_z : float — wall top and bottom on the frame's vertical axis
    closed : bool — add the segment from the last vertex back to the first

    Returns
    -------
    CurtainMesh — vertex 2i is the top of point i, 2i+1 its bottom.  Needs at
    least 2 points (open) or 3 (closed); otherwise the mesh is empty.
    Coincident consecutive points are kept and give zero-area triangles.
    """
    if bottom_z >= top_z:
        raise ValueError(f"bottom_z ({bottom_z}) must be below top_z ({top_z})")

    pts = np.asarray(local_points, dtype=np.float64)
    if pts.size == 0:
        pts = pts.reshape(-1, 2)
    elif pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"local_points must have shape (N, 2), got {pts.shape}")
    n = len(pts)
    if n < (3 if closed else 2):
        logger.debug(f"Curtain needs more points ({n}, closed={closed}), empty mesh")
        return CurtainMesh.empty()

    # ── Vertices: top/bottom pair per point ─────────────────────
    verts = np.empty((n * 2, 3), dtype=np.float64)
    verts[0::2, :2] = pts
    verts[0::2, 2] = top_z
    verts[1::2, :2] = pts
    verts[1::2, 2] = bottom_z

    # ── Faces: 2 triangles per segment ──────────────────────────
    if closed:
        seg = np.arange(n, dtype=np.int64)
        nxt = (seg + 1) % n
    else:
        seg = np.arange(n - 1, dtype=np.int64)
        nxt = seg + 1

    top_i, bottom_i = seg * 2, seg * 2 + 1
    top_next, bottom_next = nxt * 2, nxt * 2 + 1

    # Same winding for every quad so normals face one consistent side
    tri1 = np.column_stack([top_i, top_next, bottom_i])
    tri2 = np.column_stack([top_next, bottom_next, bottom_i])
    faces = np.stack([tri1, tri2], axis=1).reshape(-1, 3)

    return CurtainMesh(vertices=verts, indices=faces)


def curtain_to_trimesh(mesh: CurtainMesh, color: str = "#00ffff",
                       offset=(0.0, 0.0, 0.0), y_up: bool = False) -> trimesh.Trimesh:
    """Wrap a curtain in a trimesh with a glowing, translucent material.

    ``offset`` is added to every vertex (Z-up local metres).  With ``y_up``
    the result is rotated into glTF's Y-up convention (east, up, south).
    """
    verts = mesh.vertices + np.asarray(offset, dtype=np.float64)
    if y_up:
        verts = np.column_stack([verts[:, 0], verts[:, 2], -verts[:, 1]])

    tm = trimesh.Trimesh(vertices=verts, faces=mesh.indices, process=False)

    rgba = trimesh.visual.color.hex_to_rgba(color).astype(np.float64) / 255.0
    material = PBRMaterial(
        baseColorFactor=[rgba[0], rgba[1], rgba[2], CURTAIN_OPACITY],
        emissiveFactor=[rgba[0], rgba[1], rgba[2]],
        alphaMode='BLEND',
        metallicFactor=0.0,
        doubleSided=True,
    )
    tm.visual = trimesh.visual.TextureVisuals(material=material)
    return tm


def export_curtains(results, output_path: str, color: str = "#00ffff") -> str:
    """Write every non-empty curtain into one scene file.

    The scene origin is the first curtain's anchor at height 0; each curtain
    is shifted horizontally by its anchor's offset from there and vertically
    by its ``anchor_height``.  File type follows the suffix.

    Returns the absolute path to the written file.
    """
    output_path = PathManager.get_output_path(output_path)
    file_type = _EXPORT_TYPES.get(output_path.suffix.lower())
    if file_type is None:
        raise ValueError(f"Unsupported export format {output_path.suffix!r}; "
                         f"use one of {sorted(_EXPORT_TYPES)}")

    placed = [r for r in results if not r.mesh.is_empty]
    if not placed:
        raise ValueError("No curtains with geometry to export")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    origin_frame = placed[0].frame
    offsets = []
    for result in placed:
        dx, dy = origin_frame.project(result.frame.anchor)
        offsets.append((dx, dy, result.anchor_height))

    if file_type == 'glb':
        scene = trimesh.Scene()
        for result, offset in zip(placed, offsets):
            tm = curtain_to_trimesh(result.mesh, color=color,
                                    offset=offset, y_up=True)
            scene.add_geometry(tm, geom_name=result.feature_id)
        scene.export(str(output_path), file_type='glb')
    else:
        # Single-mesh formats: merge plain geometry, Z-up
        meshes = [
            trimesh.Trimesh(vertices=r.mesh.vertices + np.asarray(off),
                            faces=r.mesh.indices, process=False)
            for r, off in zip(placed, offsets)
        ]
        combined = trimesh.util.concatenate(meshes)
        combined.export(str(output_path), file_type=file_type)

    logger.info(f"Exported {len(placed)} curtain(s) to {output_path}")
    return str(pathlib.Path(output_path).absolute())
