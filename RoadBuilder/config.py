# config.py
from dataclasses import dataclass

@dataclass(frozen=True)
class Defaults:
    # world
    WIDTH:  int = 1200
    HEIGHT: int = 800
    GRID_SIZE: int = 20

    # GEOMETRY

    PARALLEL_EPSILON: float = 1e-4
    CROSSING_T_MIN: float = 0.01
    CROSSING_T_MAX: float = 0.99
    BEZIER_SAMPLE_SEGMENTS: int = 10

    # ROAD NETWORK

    CROSSING_DEDUP_DISTANCE: float = 5.0     # crossing vs. already found intersection
    ON_ROAD_TOLERANCE: float = 2.0           # crossing distance to the road's line
    MAX_SNAP_DISTANCE: float = 50.0          # building → nearest graph node

    # ROAD PLACEMENT

    ROAD_OVERLAP_THRESHOLD: float = 15.0
    ROAD_OVERLAP_RATIO: float = 0.5
    ROAD_OVERLAP_SAMPLES: int = 10
    ROAD_SAMPLE_SPACING: float = 10.0        # px between samples for river / building checks
    RIVER_ROAD_MARGIN: float = 10.0
    RIVER_BUILDING_MARGIN: float = 50.0
    POINT_SNAP_DISTANCE: float = 15.0
    BUILDING_SNAP_BONUS: float = 10.0
    CURVE_STRENGTH: float = 0.4              # control point offset as a share of the chord

    # BUILDINGS

    # (width, height) of the axis-aligned footprint per role
    BUILDING_FOOTPRINTS = {
        "home": (36, 30),
        "office": (40, 50),
    }
    BUILDING_FOOTPRINT_MARGIN: float = 2.0

    BUILDING_COLORS = [
        "#ef4444",
        "#3b82f6",
        "#22c55e",
        "#eab308",
        "#a855f7",
        "#ec4899",
        "#14b8a6",
        "#f97316",
    ]

    BUILDING_MARGIN: float = 60.0
    MIN_BUILDING_DISTANCE: float = 100.0
    MIN_HOME_OFFICE_DISTANCE: float = 200.0
    HOME_ROAD_CLEARANCE: float = 50.0
    OFFICE_ROAD_CLEARANCE: float = 55.0
    BUILDING_PLACEMENT_ATTEMPTS: int = 2000
    BUILDING_GRID_SCAN_STEP: int = 50
    INITIAL_BUILDING_PAIRS: int = 3
    UNSUFFIXED_BUILDING_PAIRS: int = 5

    # RIVER

    RIVER_ENABLED: bool = True
    RIVER_MIN_WIDTH: float = 40.0
    RIVER_MAX_WIDTH: float = 70.0
    RIVER_SAMPLES_PER_SEGMENT: int = 5
    RIVER_EDGE_PADDING: float = 80.0
    RIVER_MEANDER: float = 80.0

    RIVER_DIRECTIONS = ["horizontal", "vertical", "diagonal"]

    # VEHICLE SETTINGS

    VEHICLE_SPEED: float = 2.0
    LANE_OFFSET: float = 6.0
    DEFAULT_LANE: str = "right"

    # INTERSECTIONS

    ARRIVAL_RADIUS: float = 30.0     # arrival bookkeeping zone
    INNER_RADIUS: float = 15.0       # committed vehicles never stop inside
    APPROACH_RADIUS: float = 35.0    # outer edge of the FIFO approach band

    CONGESTED_VEHICLE_COUNT: int = 4
    HEAVY_CONGESTION_VEHICLE_COUNT: int = 8

    # TIMING

    TICK_INTERVAL_MS: int = 16
    OFFICE_WAIT_TIME_MS: int = 3000
    VEHICLE_SPAWN_INTERVAL_MS: int = 2000
    MAX_VEHICLES: int = 20

    # SCORING

    SCORE_PER_TRIP: int = 1

    # STATISTICS
    COLLECT_STATISTICS: bool = True
