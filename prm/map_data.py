# prm/map_data.py
"""
Map view model: people with coordinates as a DataFrame, and the Plotly
figure that renders them. Tiles and clustering are done by Plotly.
"""
from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go

from prm.sanitize import escape_html

CLUSTER_MAX_ZOOM = 14
# target cluster radius in px; Plotly exposes no setting for it, so the renderer decides
CLUSTER_RADIUS = 50

# (min point_count, color, radius px)
CLUSTER_STEPS = [
    (0, "#ef4444", 20),   # red-500
    (5, "#f59e0b", 30),   # amber-500
    (20, "#10b981", 40),  # emerald-500
]

POINT_COLOR = "#3b82f6"
USER_COLOR = "#22d3ee"

POINT_COLUMNS = ["id", "name", "lat", "lng", "location_name", "organizations"]


def _step(count: int, index: int):
    value = CLUSTER_STEPS[0][index]
    for threshold, *rest in CLUSTER_STEPS:
        if count >= threshold:
            value = rest[index - 1]
    return value


def cluster_color(count: int) -> str:
    return _step(count, 1)


def cluster_radius(count: int) -> int:
    return _step(count, 2)


def has_location(person) -> bool:
    return (
        person.get("current_location_lat") is not None
        and person.get("current_location_lng") is not None
    )


def people_points(people) -> pd.DataFrame:
    """One row per person that has coordinates."""
    rows = [
        {
            "id": p["id"],
            "name": p.get("name") or "",
            "lat": float(p["current_location_lat"]),
            "lng": float(p["current_location_lng"]),
            "location_name": p.get("location_name") or "",
            "organizations": ", ".join(o.get("name") or "" for o in p.get("organizations") or []),
        }
        for p in people
        if has_location(p)
    ]
    return pd.DataFrame(rows, columns=POINT_COLUMNS)


def _hover(row) -> str:
    text = f"<b>{escape_html(row['name'])}</b>"
    if row["organizations"]:
        text += f"<br>{escape_html(row['organizations'])}"
    if row["location_name"]:
        text += f"<br>{escape_html(row['location_name'])}"
    return text


def build_people_map(people, center, zoom: int = 11, map_style: str = "carto-darkmatter") -> go.Figure:
    """
    Clustered people markers plus a marker for the user's own location.
    Each people point carries the person id in customdata for click handling.
    """
    points = people_points(people)
    fig = go.Figure()

    fig.add_trace(go.Scattermap(
        lat=points["lat"],
        lon=points["lng"],
        mode="markers",
        marker=dict(size=12, color=POINT_COLOR),
        customdata=points["id"],
        hoverinfo="text",
        hovertext=points.apply(_hover, axis=1) if len(points) else [],
        cluster=dict(
            enabled=True,
            maxzoom=CLUSTER_MAX_ZOOM,
            # step[i] is the lower bound for color[i + 1]
            step=[threshold for threshold, _, _ in CLUSTER_STEPS[1:]],
            color=[color for _, color, _ in CLUSTER_STEPS],
            size=[radius for _, _, radius in CLUSTER_STEPS],
        ),
        name="People",
    ))

    lat, lng = center
    fig.add_trace(go.Scattermap(
        lat=[lat],
        lon=[lng],
        mode="markers",
        marker=dict(size=16, color=USER_COLOR, opacity=0.9),
        hoverinfo="text",
        hovertext=["You are here"],
        name="You",
    ))

    fig.update_layout(
        map=dict(style=map_style, center=dict(lat=lat, lon=lng), zoom=zoom),
        margin=dict(l=0, r=0, t=0, b=0),
        height=600,
        showlegend=False,
        paper_bgcolor="rgba(0,0,0,0)",
    )
    return fig
