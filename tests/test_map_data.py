from prm.map_data import (
    CLUSTER_MAX_ZOOM,
    build_people_map,
    cluster_color,
    cluster_radius,
    people_points,
)

PEOPLE = [
    {
        "id": "p1",
        "name": "Ada",
        "current_location_lat": 37.77,
        "current_location_lng": -122.42,
        "location_name": "San Francisco",
        "organizations": [{"id": "o1", "name": "Acme"}, {"id": "o2", "name": "Bell"}],
    },
    {"id": "p2", "name": "Brian", "current_location_lat": None, "current_location_lng": None},
    {"id": "p3", "name": "Carol", "current_location_lat": 0.0, "current_location_lng": 0.0},
]


def test_people_points_skip_people_without_coordinates():
    df = people_points(PEOPLE)
    assert list(df["id"]) == ["p1", "p3"]
    assert df.iloc[0]["organizations"] == "Acme, Bell"
    # zero is a real coordinate
    assert df.iloc[1]["lat"] == 0.0


def test_people_points_empty():
    df = people_points([])
    assert df.empty
    assert "lat" in df.columns


def test_cluster_steps():
    assert cluster_color(2) == "#ef4444"
    assert cluster_radius(4) == 20
    assert cluster_color(5) == "#f59e0b"
    assert cluster_radius(19) == 30
    assert cluster_color(20) == "#10b981"
    assert cluster_radius(500) == 40


def test_build_people_map_has_people_and_user_traces():
    fig = build_people_map(PEOPLE, center=(37.7749, -122.4194), zoom=11)

    people_trace, user_trace = fig.data
    assert list(people_trace.customdata) == ["p1", "p3"]
    assert people_trace.cluster.enabled is True
    assert people_trace.cluster.maxzoom == CLUSTER_MAX_ZOOM
    assert list(user_trace.lat) == [37.7749]
    assert fig.layout.map.zoom == 11


def _rendered_cluster_style(cluster, count):
    # color[0] below step[0], color[i + 1] from step[i] up
    idx = sum(1 for threshold in cluster.step if count >= threshold)
    return cluster.color[idx], cluster.size[idx]


def test_figure_cluster_styles_match_step_helpers():
    cluster = build_people_map(PEOPLE, center=(0, 0)).data[0].cluster

    for count in (2, 4, 5, 19, 20, 250):
        assert _rendered_cluster_style(cluster, count) == (cluster_color(count), cluster_radius(count))
    assert _rendered_cluster_style(cluster, 3) == ("#ef4444", 20)


def test_build_people_map_with_nobody_mapped():
    fig = build_people_map([], center=(0, 0))
    assert len(fig.data[0].lat) == 0
