from .bfs_python import bfs_shortest_path, find_path, interpolate_path

__all__ = ["bfs_shortest_path", "find_path", "interpolate_path"]
