import pytest

from wayfinder.services.elevation import add_constant_z, interpolate_line, to_3d


def test_constant_z_on_nested_coordinates() -> None:
    polygon = [[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0, 7.0], [0.0, 0.0]]]
    out = add_constant_z(polygon, 3.0)
    assert out == [[[0.0, 0.0, 3.0], [1.0, 0.0, 3.0], [1.0, 1.0, 7.0], [0.0, 0.0, 3.0]]]


def test_constant_z_defaults_to_zero() -> None:
    assert add_constant_z([1.0, 2.0], None) == [1.0, 2.0, 0.0]
    assert add_constant_z([1.0, 2.0], float("nan")) == [1.0, 2.0, 0.0]


def test_interpolation_follows_distance_fraction() -> None:
    # middle vertex a third of the way along
    line = [[0.0, 0.0], [0.001, 0.0], [0.003, 0.0]]
    out = interpolate_line(line, 100.0, 130.0)
    assert out[0][2] == 100.0
    assert out[-1][2] == 130.0
    assert out[1][2] == pytest.approx(110.0)


def test_interpolation_is_monotonic() -> None:
    line = [[0.0, 0.0], [0.0005, 0.0002], [0.001, 0.0001], [0.002, 0.0003], [0.0025, 0.0]]
    rising = [c[2] for c in interpolate_line(line, 5.0, 9.0)]
    assert rising == sorted(rising)
    falling = [c[2] for c in interpolate_line(line, 9.0, 5.0)]
    assert falling == sorted(falling, reverse=True)


def test_interpolation_keeps_existing_elevation() -> None:
    out = interpolate_line([[0.0, 0.0], [0.001, 0.0, 42.0], [0.002, 0.0]], 0.0, 10.0)
    assert out[1][2] == 42.0


def test_missing_end_elevation_is_flat() -> None:
    out = interpolate_line([[0.0, 0.0], [0.001, 0.0], [0.002, 0.0]], 12.0, None)
    assert [c[2] for c in out] == [12.0, 12.0, 12.0]


def test_degenerate_line_uses_vertex_fractions() -> None:
    out = interpolate_line([[1.0, 1.0], [1.0, 1.0], [1.0, 1.0]], 0.0, 10.0)
    assert [c[2] for c in out] == [0.0, 5.0, 10.0]


def test_to_3d_geojson() -> None:
    point = {"type": "Point", "coordinates": [1.0, 2.0]}
    assert to_3d(point, z=5.0) == {"type": "Point", "coordinates": [1.0, 2.0, 5.0]}
    assert point["coordinates"] == [1.0, 2.0]

    line = {"type": "LineString", "coordinates": [[0.0, 0.0], [0.001, 0.0]]}
    assert to_3d(line, z_start=1.0, z_end=3.0)["coordinates"] == [[0.0, 0.0, 1.0], [0.001, 0.0, 3.0]]
    assert to_3d(line, z=2.0)["coordinates"] == [[0.0, 0.0, 2.0], [0.001, 0.0, 2.0]]
    assert to_3d(None) is None
