import pytest

from geogrid_api.services.exporter import EXPORT_COLUMNS, build_export_frame, export_csv
from geogrid_api.services.grid import generate_grid
from geogrid_api.services.metrics import compute_metrics


def test_frame_has_one_row_per_cell(make_result):
    result = make_result()
    frame = build_export_frame(result)

    assert list(frame.columns) == EXPORT_COLUMNS
    assert len(frame) == 9
    assert frame.iloc[0][["Row", "Column", "Ranking"]].tolist() == [1, 1, 1]
    assert frame.iloc[-1][["Row", "Column", "Ranking"]].tolist() == [3, 3, 10]


def test_frame_coordinates_match_generated_grid(make_result):
    result = make_result()
    frame = build_export_frame(result)
    points = generate_grid(result.business_info.location, 3, result.distance_km)

    for (_, row), point in zip(frame.iterrows(), points):
        assert row["Latitude"] == pytest.approx(point.lat, abs=1e-6)
        assert row["Longitude"] == pytest.approx(point.lng, abs=1e-6)


def test_export_csv_layout(make_result):
    result = make_result()
    result = result.model_copy(update={"metrics": compute_metrics(result.grid_data)})

    content = export_csv(result)
    lines = content.splitlines()

    assert lines[0] == '"GeoGrid Results for Acme Plumbing"'
    assert lines[1] == '"Search Term: plumber near me"'
    assert lines[2] == '"Date: 2024-05-01"'
    assert lines[4] == "Row,Column,Latitude,Longitude,Ranking"
    assert lines[5].startswith("1,1,39.991017,")
    assert lines[5].endswith(",1")
    assert '"AGR (Average Grid Ranking)",11.0' in lines
    assert '"ATGR (Average Top Grid Ranking)",6.00' in lines
    assert '"SoLV (Share of Local Voice)",33%' in lines


def test_empty_grid_exports_header_only(make_result):
    result = make_result(grid_data=[[0]]).model_copy(update={"grid_data": []})
    frame = build_export_frame(result)
    assert frame.empty
    assert "Row,Column,Latitude,Longitude,Ranking" in export_csv(result)
