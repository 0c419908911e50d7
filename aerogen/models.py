"""Pydantic models -- shared contract between all aerogen modules.

API Naming Contract:
  - Python code uses snake_case field names.
  - The wire format is camelCase (rootChord, sweepDeg, aspectRatio, ...).
    Every model inherits CamelModel so model_dump(by_alias=True) produces
    camelCase keys, and populate_by_name=True accepts either spelling.

ComponentParameters is a discriminated union on ``kind``.  Each member only
declares the fields meaningful for its kind, so a validated record can never
carry stale cross-type fields.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enum / Literal Types
# ---------------------------------------------------------------------------

ComponentKind = Literal["wing", "fuselage", "stabilizer"]
Orientation = Literal["horizontal", "vertical"]
MetricName = Literal["aspect_ratio", "taper_ratio", "planform_area"]
ExportFormat = Literal["stl", "gltf"]

DEFAULT_NACA = "0012"


# ---------------------------------------------------------------------------
# Base model for camelCase serialization
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    """Base for models serialized to clients with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ---------------------------------------------------------------------------
# Component parameters -- one class per kind
# ---------------------------------------------------------------------------

class WingParameters(CamelModel):
    """Main wing. Lengths in meters, sweep in degrees."""

    kind: Literal["wing"] = "wing"
    span: float = Field(default=10.0, gt=0, le=100)
    root_chord: float = Field(default=2.0, gt=0)
    # tip_chord > root_chord (inverse taper) is legal; the safety checker flags it.
    tip_chord: float = Field(default=1.0, gt=0)
    sweep_deg: float = Field(default=0.0, ge=0, le=60)
    naca: str = Field(default=DEFAULT_NACA, pattern=r"^\d{4}$")


class FuselageParameters(CamelModel):
    """Fuselage modelled as a tapered tube."""

    kind: Literal["fuselage"] = "fuselage"
    length: float = Field(default=8.0, gt=0)
    diameter: float = Field(default=2.0, gt=0)


class StabilizerParameters(CamelModel):
    """Horizontal or vertical tail surface."""

    kind: Literal["stabilizer"] = "stabilizer"
    span: float = Field(default=4.0, gt=0)
    sweep_deg: float = Field(default=0.0, ge=0, le=60)
    orientation: Orientation = "horizontal"


ComponentParameters = Annotated[
    Union[WingParameters, FuselageParameters, StabilizerParameters],
    Field(discriminator="kind"),
]

_COMPONENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(ComponentParameters)


def parse_component(data: dict[str, Any]) -> WingParameters | FuselageParameters | StabilizerParameters:
    """Validate a plain dict into the matching ComponentParameters class.

    Raises:
        pydantic.ValidationError: If ``kind`` is unknown or a field is out of range.
    """
    return _COMPONENT_ADAPTER.validate_python(data)


# ---------------------------------------------------------------------------
# Derived values -- metrics and safety verdict
# ---------------------------------------------------------------------------

class AeroMetrics(CamelModel):
    """Planform metrics, defined for wings only."""

    aspect_ratio: float
    taper_ratio: float
    planform_area: float


class SafetyFinding(CamelModel):
    """A single safety-envelope finding."""

    id: str  # W01-W05, F01-F03, T01-T02
    level: Literal["critical", "warning"]
    message: str
    fields: list[str] = Field(default_factory=list)


class SafetyVerdict(CamelModel):
    """Critical and warning findings for one parameter record."""

    critical: list[SafetyFinding] = Field(default_factory=list)
    warning: list[SafetyFinding] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when there are no findings at all (a clean pass)."""
        return not self.critical and not self.warning

    @property
    def is_safe(self) -> bool:
        """True when no hard limit is violated (warnings allowed)."""
        return not self.critical


# ---------------------------------------------------------------------------
# REST Request/Response Types
# ---------------------------------------------------------------------------

class GenerateRequest(CamelModel):
    """Request body for POST /api/generate.

    ``raw`` lets a caller skip the extraction service and submit a record
    directly (canned presets, replays).  ``api_key`` overrides AEROGEN_API_KEY.
    """

    text: str = ""
    raw: dict[str, Any] | None = None
    api_key: str | None = None


class MeshSummary(CamelModel):
    """Mesh statistics returned by the REST API (buffers go over /ws/preview)."""

    vertex_count: int
    face_count: int
    groups: dict[str, tuple[int, int]]
    bounds_min: tuple[float, float, float]
    bounds_max: tuple[float, float, float]


class GenerationResult(CamelModel):
    """Response from POST /api/generate."""

    params: ComponentParameters
    warnings: list[str] = Field(default_factory=list)
    metrics: AeroMetrics | None = None
    safety: SafetyVerdict
    mesh: MeshSummary


class CheckResult(CamelModel):
    """Response from POST /api/check and POST /api/metrics/edit."""

    params: ComponentParameters
    metrics: AeroMetrics | None = None
    safety: SafetyVerdict


class MetricEditRequest(CamelModel):
    """Request body for POST /api/metrics/edit."""

    params: WingParameters
    metric: MetricName
    value: float


class PresetSummary(CamelModel):
    """Summary for preset listing (GET /api/presets)."""

    id: str
    name: str
    kind: ComponentKind
    builtin: bool = False
    created_at: str = ""


class SavePresetRequest(CamelModel):
    """Request body for POST /api/presets."""

    name: str
    params: ComponentParameters
