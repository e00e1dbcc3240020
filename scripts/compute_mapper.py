#!/usr/bin/env python3
"""
Compute Mapper Graph Script

Builds a Mapper graph from a point cloud (or a distance matrix) and a filter.

Cover and clustering parameters default to mapper.json under "mapping".

Input:
    - Points (--points, .npy or .csv) OR a distance matrix (--distances)
    - Filter values (--filter-file) or a builtin filter (--filter)

Output:
    - Graph JSON (mapping.output_path): nodes, edges, stats

Usage:
    python scripts/compute_mapper.py --points data/circle.npy --filter coordinate
    python scripts/compute_mapper.py --distances d.npy --filter eccentricity --intervals 8
    python scripts/compute_mapper.py --points x.csv --filter-file f.csv --overlap 30 --legacy
"""

import argparse
import json
import sys
import time
from datetime import datetime
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mapper_core.config import config
from mapper_core.errors import MapperError
from mapper_core.logging import get_logger
from mapping import MapperConfigBuilder, build_mapper_graph, make_distance_provider
from mapping.filters import DISTANCE_FILTERS, coordinate

logger = get_logger("compute_mapper")


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def load_matrix(path: str) -> np.ndarray:
    """Load a .npy or comma-separated text matrix."""
    if path.endswith(".npy"):
        return np.load(path)
    return np.loadtxt(path, delimiter=",", ndmin=2)


def parse_vector(text: str, cast):
    """'5' -> 5, '5,3' -> [5, 3]."""
    parts = [cast(p) for p in text.split(",") if p.strip()]
    return parts[0] if len(parts) == 1 else parts


def main():
    parser = argparse.ArgumentParser(
        description="Compute a Mapper graph from points or a distance matrix"
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--points", help="Coordinate matrix (.npy or .csv)")
    source.add_argument("--distances", help="Pairwise distance matrix (.npy or .csv)")

    filt = parser.add_mutually_exclusive_group(required=True)
    filt.add_argument("--filter-file", help="Filter values (.npy or .csv), one row per point")
    filt.add_argument(
        "--filter",
        choices=["coordinate", *DISTANCE_FILTERS.keys()],
        help="Builtin filter function",
    )
    parser.add_argument("--column", type=int, default=0, help="Column for the coordinate filter")
    parser.add_argument("--index", type=int, default=0, help="Base point for distance-to-point")

    # All params default to mapper.json values
    parser.add_argument(
        "--intervals",
        default=str(config.get("mapping.num_intervals")),
        help="Intervals per filter dimension, e.g. '10' or '5,8'",
    )
    parser.add_argument(
        "--overlap",
        default=str(config.get("mapping.percent_overlap")),
        help="Percent overlap per filter dimension, e.g. '50' or '20,30'",
    )
    parser.add_argument(
        "--clusterer",
        default=config.get("mapping.clusterer"),
        help="Builtin clustering strategy name",
    )
    parser.add_argument(
        "--bins",
        type=int,
        default=config.get("mapping.num_bins_when_clustering"),
        help="Histogram bins for the single-linkage cut",
    )
    parser.add_argument(
        "--metric",
        default=config.get("mapping.metric"),
        help="scipy distance metric for --points",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=config.get("mapping.workers"),
        help="Worker threads",
    )
    parser.add_argument(
        "--output",
        default=config.get("mapping.output_path"),
        help="Output JSON path",
    )
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Also write the adjacency + points_in_vertex export",
    )

    args = parser.parse_args()

    logger.info("=" * 60)
    logger.info("COMPUTE MAPPER GRAPH")
    logger.info("=" * 60)
    logger.info(f"Source: {args.points or args.distances}")
    logger.info(f"Filter: {args.filter_file or args.filter}")
    logger.info(f"Cover: intervals={args.intervals}, overlap={args.overlap}")
    logger.info(f"Clustering: {args.clusterer} (bins={args.bins})")
    logger.info("=" * 60)

    start_time = time.time()
    try:
        points = load_matrix(args.points) if args.points else None
        distance_matrix = load_matrix(args.distances) if args.distances else None

        if args.filter_file:
            filter_values = load_matrix(args.filter_file)
        elif args.filter == "coordinate":
            if points is None:
                parser.error("--filter coordinate needs --points")
            filter_values = coordinate(points, args.column)
        else:
            provider = make_distance_provider(distance_matrix, points, metric=args.metric)
            if args.filter == "distance-to-point":
                filter_values = DISTANCE_FILTERS[args.filter](provider, args.index)
            else:
                filter_values = DISTANCE_FILTERS[args.filter](provider)

        mapper_config = (
            MapperConfigBuilder()
            .cover(
                num_intervals=parse_vector(args.intervals, int),
                percent_overlap=parse_vector(args.overlap, float),
            )
            .clustering(args.clusterer, num_bins_when_clustering=args.bins)
            .metric(args.metric)
            .workers(args.workers)
            .build()
        )
        graph = build_mapper_graph(
            filter_values, mapper_config, distance_matrix=distance_matrix, points=points
        )
    except (MapperError, OSError, ValueError) as e:
        logger.error(f"Mapper computation failed: {e}")
        sys.exit(1)

    elapsed = time.time() - start_time

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    export = graph.to_dict()
    export["stats"]["mapping_time_seconds"] = round(elapsed, 2)
    export["generated_at"] = datetime.now().isoformat()
    if args.legacy:
        legacy = graph.to_legacy()
        export["legacy"] = {
            "adjacency": legacy.adjacency,
            "num_vertices": legacy.num_vertices,
            "points_in_vertex": legacy.points_in_vertex,
            "level_of_vertex": legacy.level_of_vertex,
            "points_in_level_set": legacy.points_in_level_set,
            "vertices_in_level_set": legacy.vertices_in_level_set,
            "level_shape": list(legacy.level_shape),
        }

    with open(output_path, "w") as f:
        json.dump(export, f, indent=2, cls=NumpyEncoder)
    logger.info(f"Exported graph to {output_path}")

    stats = export["stats"]
    print("\n" + "=" * 60)
    print("MAPPER GRAPH COMPLETE")
    print("=" * 60)
    print(f"Nodes: {stats['num_nodes']}")
    print(f"Edges: {stats['num_edges']}")
    print(f"Components: {stats['num_components']}")
    print(f"Cycle rank: {stats['cycle_rank']}")
    print(f"Time: {stats['mapping_time_seconds']:.2f}s")
    print("=" * 60)
    print(f"\nOutput: {output_path}")


if __name__ == "__main__":
    main()
