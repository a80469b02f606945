"""
Pydantic models for the canonical, persisted scene script.

The script JSON is the contract between the converter and the renderer, so
field names are camelCase on the wire and snake_case in Python. Unknown keys
are ignored on validation; optional fields that are unset are omitted when
the script is dumped with `dump_script`.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

SlideType = Literal[
    "title",
    "list",
    "steps",
    "image-text",
    "table",
    "summary",
    "ending",
    "bridge",
    "quote",
    "definition",
    "highlight",
    "tips",
    "warning",
    "comparison",
    "stat",
    "checklist",
    "before-after",
    "code",
    "qa",
    "two-column",
    "agenda",
    "gallery",
    "process",
    "profile",
    "metrics",
    "icon-list",
]

DiagramType = Literal[
    "timeline",
    "cycle",
    "pie",
    "matrix",
    "venn",
    "funnel",
    "pyramid",
    "bar",
    "line",
    "flow",
    "tree",
    "radar",
    "gantt",
    "area",
    "network",
]

Speaker = Literal["left", "right"]
TransitionType = Literal["fade", "wipe", "slide", "zoom", "none"]
AnnotationType = Literal["arrow", "circle", "highlight", "underline", "box"]

SLIDE_TYPES: tuple[str, ...] = get_args(SlideType)
DIAGRAM_TYPES: tuple[str, ...] = get_args(DiagramType)
TRANSITION_TYPES: tuple[str, ...] = get_args(TransitionType)

Number = Union[int, float]


class CamelModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SoundEffect(CamelModel):
    path: str = Field(description="Path of the sound effect file.")
    volume: float = Field(default=0.3, ge=0.0, le=1.0, description="Playback volume between 0 and 1.")


class GeneratedImage(CamelModel):
    source: Literal["generate"]
    prompt: str = Field(description="Prompt handed to the image generator.")


class StaticImage(CamelModel):
    source: Literal["static"]
    path: str = Field(description="Path of an existing image asset.")


ImageSource = Annotated[Union[GeneratedImage, StaticImage], Field(discriminator="source")]


class Annotation(CamelModel):
    type: AnnotationType
    x: Number
    y: Number
    width: Optional[Number] = None
    height: Optional[Number] = None
    target_x: Optional[Number] = None
    target_y: Optional[Number] = None
    color: Optional[str] = None
    label: Optional[str] = None
    trigger_frame: Optional[Number] = None
    se: Optional[SoundEffect] = None


# ---------------------------------------------------------------------------
# Diagrams
# ---------------------------------------------------------------------------


class TimelineEvent(CamelModel):
    label: str
    description: Optional[str] = None


class TimelineDiagram(CamelModel):
    type: Literal["timeline"]
    events: List[TimelineEvent]


class CycleDiagram(CamelModel):
    type: Literal["cycle"]
    steps: List[str]


class LabelledValue(CamelModel):
    label: str
    value: Number
    color: Optional[str] = None


class PieDiagram(CamelModel):
    type: Literal["pie"]
    slices: List[LabelledValue]


class Quadrant(CamelModel):
    label: str
    items: List[str]


class MatrixDiagram(CamelModel):
    type: Literal["matrix"]
    axis_x: str
    axis_y: str
    quadrants: List[Quadrant] = Field(min_length=4, max_length=4)


class VennSet(CamelModel):
    label: str
    items: Optional[List[str]] = None


class VennDiagram(CamelModel):
    type: Literal["venn"]
    sets: List[VennSet] = Field(min_length=2, max_length=3)
    intersection: Optional[str] = None


class FunnelStage(CamelModel):
    label: str
    value: Optional[Number] = None


class FunnelDiagram(CamelModel):
    type: Literal["funnel"]
    stages: List[FunnelStage]


class PyramidLevel(CamelModel):
    label: str
    description: Optional[str] = None


class PyramidDiagram(CamelModel):
    type: Literal["pyramid"]
    levels: List[PyramidLevel]


class BarDiagram(CamelModel):
    type: Literal["bar"]
    orientation: Optional[Literal["vertical", "horizontal"]] = None
    bars: List[LabelledValue]


class Series(CamelModel):
    label: str
    data: List[Number]
    color: Optional[str] = None


class LineDiagram(CamelModel):
    type: Literal["line"]
    series: List[Series]
    x_labels: Optional[List[str]] = None


class FlowNode(CamelModel):
    id: str
    label: str
    shape: Optional[Literal["rect", "diamond", "oval"]] = None


class FlowEdge(CamelModel):
    from_: str = Field(alias="from")
    to: str
    label: Optional[str] = None


class FlowDiagram(CamelModel):
    type: Literal["flow"]
    nodes: List[FlowNode]
    edges: List[FlowEdge]


class TreeLeaf(CamelModel):
    label: str


class TreeBranch(CamelModel):
    label: str
    children: Optional[List[TreeLeaf]] = None


class TreeDiagram(CamelModel):
    type: Literal["tree"]
    root: str
    children: List[TreeBranch]


class RadarAxis(CamelModel):
    label: str
    value: Number


class RadarDiagram(CamelModel):
    type: Literal["radar"]
    axes: List[RadarAxis]


class GanttTask(CamelModel):
    label: str
    start: Number
    end: Number
    color: Optional[str] = None


class GanttDiagram(CamelModel):
    type: Literal["gantt"]
    tasks: List[GanttTask]


class AreaDiagram(CamelModel):
    type: Literal["area"]
    series: List[Series]
    x_labels: Optional[List[str]] = None


class NetworkNode(CamelModel):
    id: str
    label: str
    size: Optional[Number] = None


class NetworkLink(CamelModel):
    source: str
    target: str
    label: Optional[str] = None


class NetworkDiagram(CamelModel):
    type: Literal["network"]
    nodes: List[NetworkNode]
    links: List[NetworkLink]


DiagramData = Annotated[
    Union[
        TimelineDiagram,
        CycleDiagram,
        PieDiagram,
        MatrixDiagram,
        VennDiagram,
        FunnelDiagram,
        PyramidDiagram,
        BarDiagram,
        LineDiagram,
        FlowDiagram,
        TreeDiagram,
        RadarDiagram,
        GanttDiagram,
        AreaDiagram,
        NetworkDiagram,
    ],
    Field(discriminator="type"),
]

DIAGRAM_ADAPTER: TypeAdapter[Any] = TypeAdapter(DiagramData)


# ---------------------------------------------------------------------------
# Script
# ---------------------------------------------------------------------------


class Column(CamelModel):
    title: str
    items: List[str]


class Metric(CamelModel):
    label: str
    value: str
    change: Optional[str] = None


class IconItem(CamelModel):
    icon: str
    text: str


class SceneSlide(CamelModel):
    """Visual template and data for one scene. Only `type` is required."""

    type: SlideType
    title: Optional[str] = None
    subtitle: Optional[str] = None
    items: Optional[List[str]] = None
    image: Optional[ImageSource] = None
    table_headers: Optional[List[str]] = None
    table_rows: Optional[List[List[str]]] = None
    diagram: Optional[DiagramData] = None
    se: Optional[SoundEffect] = None
    cta_text: Optional[str] = None
    annotations: Optional[List[Annotation]] = None
    definition: Optional[str] = None
    quote: Optional[str] = None
    attribution: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = None
    stat_value: Optional[str] = None
    stat_label: Optional[str] = None
    left_column: Optional[Column] = None
    right_column: Optional[Column] = None
    question: Optional[str] = None
    answer: Optional[str] = None
    images: Optional[List[ImageSource]] = None
    profile_image: Optional[ImageSource] = None
    profile_name: Optional[str] = None
    profile_role: Optional[str] = None
    metrics: Optional[List[Metric]] = None
    icon_items: Optional[List[IconItem]] = None


class Line(CamelModel):
    speaker: Speaker = Field(description="Which of the two on-screen speakers says the line.")
    text: str = Field(description="Spoken text.")
    expression: Optional[str] = None
    se: Optional[SoundEffect] = None


class Scene(CamelModel):
    title: str
    slide: SceneSlide
    lines: List[Line]
    transition: Optional[TransitionType] = None


class Script(CamelModel):
    """Root of the persisted `script.json` document."""

    title: str
    description: Optional[str] = None
    scenes: List[Scene]


def dump_script(script: Script) -> Dict[str, Any]:
    """Serialises a script to its wire form (camelCase keys, unset fields omitted)."""
    return script.model_dump(mode="json", by_alias=True, exclude_none=True)


def script_json_schema() -> Dict[str, Any]:
    """JSON Schema of the persisted script, as accepted by `Script`."""
    return Script.model_json_schema(by_alias=True)
