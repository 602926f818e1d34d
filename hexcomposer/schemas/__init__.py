"""Schemas for hexcomposer."""

from .base import (
    SizeBand,
    FlowWidth,
    Shape,
    BiomeType,
    WATER_BIOMES,
    StructureType,
    FlowKind,
    Tendency,
    FillerCategory,
    SnapMode,
    PartType,
)
from .features import (
    RelativePosition,
    FeatureBase,
    AreaFeature,
    Biome,
    Structure,
    Flow,
    Snap,
    Point,
    SideWall,
    Feature,
    WorldDefinition,
)
from .prepared import (
    PreparedPosition,
    PreparedArea,
    PreparedFlow,
    PreparedPoint,
    PreparedSideWall,
    PreparedFeature,
    PreparedComposition,
)
from .results import (
    FeatureFailure,
    PlacedFeature,
    BiomePlacementResult,
    FilledHexGrid,
    HexGridFillResult,
    FlowConfigPart,
    RoutedFlow,
    RoutedSideWall,
    FlowRoutingResult,
    PlacedPoint,
    PointPlacementResult,
    ResolvedFeature,
    CompositionResult,
)

__all__ = [
    # base
    "SizeBand",
    "FlowWidth",
    "Shape",
    "BiomeType",
    "WATER_BIOMES",
    "StructureType",
    "FlowKind",
    "Tendency",
    "FillerCategory",
    "SnapMode",
    "PartType",
    # features
    "RelativePosition",
    "FeatureBase",
    "AreaFeature",
    "Biome",
    "Structure",
    "Flow",
    "Snap",
    "Point",
    "SideWall",
    "Feature",
    "WorldDefinition",
    # prepared
    "PreparedPosition",
    "PreparedArea",
    "PreparedFlow",
    "PreparedPoint",
    "PreparedSideWall",
    "PreparedFeature",
    "PreparedComposition",
    # results
    "FeatureFailure",
    "PlacedFeature",
    "BiomePlacementResult",
    "FilledHexGrid",
    "HexGridFillResult",
    "FlowConfigPart",
    "RoutedFlow",
    "RoutedSideWall",
    "FlowRoutingResult",
    "PlacedPoint",
    "PointPlacementResult",
    "ResolvedFeature",
    "CompositionResult",
]
