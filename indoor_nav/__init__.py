"""Indoor positioning and navigation engine.

This package contains the components needed to track a pedestrian inside a
multi-floor building and to route them to a destination:
- utils: Geometry kernel and angle helpers
- floorplan: Floor plan data model, campus transforms, constraint queries
- correction: Buffered dead-reckoning correction pipeline
- stairs: Stairwell transition detection and animation
- navigation: Wall-distance grid A*, multi-floor routing, live route tracking
- sensors: Stride length estimation from step cadence
- eval: Track metrics and plotting helpers
- sim: Synthetic corridor building and simulated walks

Top-level modules:
- campus: Session-owned campus geometry (floors, stair pairs, router cache)
- session: Per-user tracking session wiring correction and stairs
"""

__version__ = "0.1.0"
