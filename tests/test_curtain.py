"""Tests for curtainbuilder/curtain.py mesh building and export."""
import numpy as np
import pytest
import trimesh

from curtainbuilder.curtain import build_curtain_mesh, curtain_to_trimesh, export_curtains
from curtainbuilder.models import CurtainMesh, CurtainResult, GeoPoint
from curtainbuilder.projection import LocalFrame

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


# --- vertex layout ---

def test_square_closed_counts():
    mesh = build_curtain_mesh(SQUARE, top_z=0.0, bottom_z=-100.0, closed=True)
    assert mesh.vertices.shape == (8, 3)
    assert mesh.indices.shape == (8, 3)
    assert len(mesh.flat_indices()) == 24


def test_square_first_vertices():
    mesh = build_curtain_mesh(SQUARE, top_z=0.0, bottom_z=-100.0, closed=True)
    assert tuple(mesh.vertices[0]) == (0.0, 0.0, 0.0)
    assert tuple(mesh.vertices[1]) == (0.0, 0.0, -100.0)
    assert tuple(mesh.vertices[6]) == (0.0, 10.0, 0.0)
    assert tuple(mesh.vertices[7]) == (0.0, 10.0, -100.0)


@pytest.mark.parametrize("n", [3, 4, 9, 50])
def test_closed_vertex_and_index_counts(n):
    angles = np.linspace(0, 2 * np.pi, n, endpoint=False)
    pts = np.column_stack([np.cos(angles), np.sin(angles)]) * 100.0
    mesh = build_curtain_mesh(pts, 50.0, -50.0, closed=True)
    assert len(mesh.flat_vertices()) == 2 * n * 3
    assert len(mesh.flat_indices()) == 6 * n


def test_open_has_one_fewer_segment():
    closed = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    open_ = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=False)
    assert len(open_.flat_indices()) == len(closed.flat_indices()) - 6
    assert len(open_.indices) == 2 * (len(SQUARE) - 1)
    np.testing.assert_array_equal(open_.vertices, closed.vertices)


# --- winding ---

def test_triangle_order_per_segment():
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    # segment 0: top0=0, bottom0=1, top1=2, bottom1=3
    assert mesh.indices[0].tolist() == [0, 2, 1]
    assert mesh.indices[1].tolist() == [2, 3, 1]
    # wrap-around segment 3 -> 0
    assert mesh.indices[6].tolist() == [6, 0, 7]
    assert mesh.indices[7].tolist() == [0, 1, 7]


def test_open_never_wraps():
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=False)
    assert mesh.indices[-2].tolist() == [4, 6, 5]
    assert mesh.indices[-1].tolist() == [6, 7, 5]
    assert mesh.indices.max() == 7


def test_consistent_normals_face_outward_for_clockwise_ring():
    # Clockwise (viewed from +Z) ring: this winding puts normals on the outside
    ring = [(0, 0), (0, 10), (10, 10), (10, 0)]
    mesh = build_curtain_mesh(ring, 0.0, -100.0, closed=True)
    tm = trimesh.Trimesh(vertices=mesh.vertices, faces=mesh.indices, process=False)
    centre = np.array([5.0, 5.0])
    for face, normal in zip(tm.faces, tm.face_normals):
        mid = tm.vertices[face].mean(axis=0)[:2]
        assert np.dot(mid - centre, normal[:2]) > 0


# --- degenerate input ---

@pytest.mark.parametrize("points,closed", [
    ([], False), ([(0, 0)], False), ([], True), ([(0, 0), (1, 1)], True),
])
def test_too_few_points_gives_empty_mesh(points, closed):
    mesh = build_curtain_mesh(points, 0.0, -10.0, closed=closed)
    assert mesh.is_empty
    assert mesh.vertices.shape == (0, 3)


def test_two_points_open_is_one_quad():
    mesh = build_curtain_mesh([(0, 0), (5, 0)], 0.0, -10.0, closed=False)
    assert mesh.vertices.shape == (4, 3)
    assert mesh.indices.tolist() == [[0, 2, 1], [2, 3, 1]]


def test_coincident_points_kept():
    mesh = build_curtain_mesh([(0, 0), (0, 0), (5, 0)], 0.0, -10.0, closed=False)
    assert mesh.vertices.shape == (6, 3)
    assert mesh.indices.shape == (4, 3)


@pytest.mark.parametrize("points", [
    [(0, 0, 5), (10, 0, 5)],
    [0.0, 1.0, 2.0, 3.0],
    [[(0, 0), (1, 1)]],
])
def test_points_must_be_xy_pairs(points):
    with pytest.raises(ValueError):
        build_curtain_mesh(points, 0.0, -10.0, closed=False)


@pytest.mark.parametrize("top,bottom", [(0.0, 0.0), (-100.0, 0.0)])
def test_bottom_must_be_below_top(top, bottom):
    with pytest.raises(ValueError):
        build_curtain_mesh(SQUARE, top, bottom, closed=True)


# --- purity ---

def test_rebuild_is_byte_identical():
    a = build_curtain_mesh(SQUARE, 12.5, -987.25, closed=True)
    b = build_curtain_mesh(SQUARE, 12.5, -987.25, closed=True)
    assert a.vertices.tobytes() == b.vertices.tobytes()
    assert a.indices.tobytes() == b.indices.tobytes()


def test_output_does_not_alias_input():
    pts = np.array(SQUARE, dtype=np.float64)
    mesh = build_curtain_mesh(pts, 0.0, -1.0, closed=True)
    pts[0] = (999.0, 999.0)
    assert tuple(mesh.vertices[0]) == (0.0, 0.0, 0.0)


# --- trimesh / export ---

def _result(feature_id, anchor, mesh, anchor_height=500.0):
    return CurtainResult(feature_id=feature_id, mesh=mesh, frame=LocalFrame.at(anchor),
                         base_elevation=anchor_height - 800.0,
                         anchor_height=anchor_height, elevation_source="oracle")


def test_curtain_to_trimesh_keeps_faces():
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    tm = curtain_to_trimesh(mesh, color="#ff0000")
    assert len(tm.vertices) == 8
    assert len(tm.faces) == 8
    assert tm.visual.material.doubleSided


def test_curtain_to_trimesh_y_up():
    mesh = build_curtain_mesh([(3, 4), (5, 4)], 0.0, -100.0, closed=False)
    tm = curtain_to_trimesh(mesh, offset=(0.0, 0.0, 10.0), y_up=True)
    assert tm.vertices[0].tolist() == [3.0, 10.0, -4.0]
    assert tm.vertices[1].tolist() == [3.0, -90.0, -4.0]


def test_export_glb(tmp_path):
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    results = [_result("a", GeoPoint(-118.25, 34.05), mesh),
               _result("b", GeoPoint(-118.20, 34.05), mesh, anchor_height=650.0)]
    out = export_curtains(results, str(tmp_path / "scene.glb"))
    scene = trimesh.load(out)
    assert len(scene.geometry) == 2


def test_export_stl_places_curtains(tmp_path):
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    results = [_result("a", GeoPoint(0.0, 0.0), mesh, anchor_height=100.0),
               _result("b", GeoPoint(0.001, 0.0), mesh, anchor_height=200.0)]
    out = export_curtains(results, str(tmp_path / "scene.stl"))
    combined = trimesh.load(out)
    assert len(combined.faces) == 16
    assert combined.bounds[1][2] == pytest.approx(200.0)
    assert combined.bounds[0][2] == pytest.approx(0.0)
    assert combined.bounds[1][0] == pytest.approx(111.32 + 10.0, rel=1e-4)


def test_export_skips_empty_meshes(tmp_path):
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    results = [_result("empty", GeoPoint(0.0, 0.0), CurtainMesh.empty()),
               _result("a", GeoPoint(0.0, 0.0), mesh)]
    out = export_curtains(results, str(tmp_path / "scene.glb"))
    assert len(trimesh.load(out).geometry) == 1


def test_export_nothing_raises(tmp_path):
    with pytest.raises(ValueError):
        export_curtains([_result("e", GeoPoint(0, 0), CurtainMesh.empty())],
                        str(tmp_path / "x.glb"))


def test_export_unknown_suffix_raises(tmp_path):
    mesh = build_curtain_mesh(SQUARE, 0.0, -100.0, closed=True)
    with pytest.raises(ValueError):
        export_curtains([_result("a", GeoPoint(0, 0), mesh)], str(tmp_path / "x.fbx"))
