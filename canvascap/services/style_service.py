"""Dark palette patch for the canvas' MapLibre base-map style."""

import copy
import json
from typing import Any

HALO = "rgba(0,0,0,0.7)"

# Layer id -> paint properties to overwrite
DARK_PAINT: dict[str, dict[str, Any]] = {
    "background": {"background-color": "#272e40"},
    "water": {"fill-color": "#000d2a"},
    "natural_earth": {"raster-brightness-max": 0.4},
    "landcover_ice": {"fill-color": "#475677"},
    "landcover_sand": {"fill-color": "#775f47"},
    "park_outline": {"line-opacity": 0},
    "landuse_cemetery": {"fill-color": "#3b3b57"},
    "landuse_hospital": {"fill-color": "#663e3e"},
    "building": {"fill-color": "#1c3b69"},
    "building_3d": {"fill-extrusion-color": "#1c3b69"},
    "bridge_path_pedestrian_casing": {"line-color": "#3b4d65"},
    "airport": {"text-color": "#92b7fe", "text-halo-color": HALO},
    "poi_transit": {"text-color": "#cde0fe", "text-halo-color": HALO},
    "highway_name_minor": {"text-color": "#91a0b5", "text-halo-color": HALO},
    "aeroway_fill": {"fill-color": "#2a486c"},
    "aeroway_runway": {"line-color": "#253d61"},
    "aeroway_taxiway": {"line-color": "#3d5b77"},
    "boundary_3": {"line-color": "#707784"},
}

_GROUPS: list[tuple[tuple[str, ...], dict[str, Any]]] = [
    (("waterway_tunnel", "waterway_river", "waterway_other"), {"line-color": "#000d2a"}),
    (("landuse_pitch", "landuse_track", "landuse_school"), {"fill-color": "#3e4966"}),
    (
        ("waterway_line_label", "water_name_point_label", "water_name_line_label"),
        {"text-color": "#8bb6f8", "text-halo-color": HALO},
    ),
    (
        ("tunnel_path_pedestrian", "road_path_pedestrian", "bridge_path_pedestrian"),
        {"line-color": "#7c8493"},
    ),
    (
        (
            "road_minor",
            "tunnel_service_track",
            "tunnel_minor",
            "road_service_track",
            "bridge_service_track",
            "bridge_street",
        ),
        {"line-color": "#3b4d65"},
    ),
    (
        ("tunnel_link", "tunnel_secondary_tertiary", "tunnel_trunk_primary", "tunnel_motorway"),
        {"line-color": "#4a627e"},
    ),
    (
        ("label_other", "label_state", "poi_r20", "poi_r7", "poi_r1"),
        {"text-color": "#91a0b5", "text-halo-color": HALO},
    ),
    (("highway_name_path", "highway_name_major"), {"text-color": "#cde0fe", "text-halo-color": HALO}),
    (
        (
            "label_village",
            "label_town",
            "label_city",
            "label_city_capital",
            "label_country_3",
            "label_country_2",
            "label_country_1",
        ),
        {"text-color": "#e4e5e9", "text-halo-color": HALO},
    ),
]
for _ids, _paint in _GROUPS:
    for _id in _ids:
        DARK_PAINT[_id] = _paint

# Layers whose paint is replaced wholesale rather than patched
DARK_PAINT_REPLACE: dict[str, dict[str, Any]] = {
    "park": {"fill-color": "#0e4957", "fill-opacity": 0.7},
}

# Road colors baked into expressions; rewritten in the serialized style
COLOR_REWRITES = [
    ("#e9ac77", "#476889"),  # road
    ("#fc8", "#476889"),  # primary roads
    ("#fea", "#3d5b77"),  # secondary roads
    ("#cfcdca", "#3b4d65"),  # casing
]


def apply_dark_style(style: dict[str, Any]) -> dict[str, Any]:
    """
    Return a dark-palette copy of a MapLibre style document.

    Args:
        style: Parsed style JSON (not modified)

    Returns:
        New style dict with recolored layers
    """
    patched = copy.deepcopy(style)

    for layer in patched.get("layers", []):
        layer_id = layer.get("id")
        if layer_id in DARK_PAINT_REPLACE:
            layer["paint"] = dict(DARK_PAINT_REPLACE[layer_id])
        elif layer_id in DARK_PAINT:
            layer.setdefault("paint", {}).update(DARK_PAINT[layer_id])

    text = json.dumps(patched)
    for old, new in COLOR_REWRITES:
        text = text.replace(old, new)
    return json.loads(text)
