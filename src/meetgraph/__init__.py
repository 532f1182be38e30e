"""meetgraph: meeting relationship graphs for the coaching dashboard."""

__version__ = "0.1.0"
