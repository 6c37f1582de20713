"""YAML schema validation for the persisted curve store.

Provides centralized validation using pydantic:
    - Curve record: fit mode tag + control points in [0,1] x [0,1]
    - Brush curve record: curve record keyed by brush name (and optional uid)
    - Store file (curve_store.v1): envelope with enabled flag, power setting,
      global default and brush records

The envelope keeps every field but the schema tag loosely typed so the codec
can check each one on its own and drop only what is broken.

Usage:
    from stylus_calibration.utils import validators

    envelope = validators.CurveStoreFileV1.model_validate(raw)
    record = validators.BrushCurveRecordV1.model_validate(envelope.brushes[0])
"""

from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

STORE_SCHEMA = "curve_store.v1"


# ============================================================================
# CURVE RECORDS
# ============================================================================

class CurveRecordV1(BaseModel):
    """Pressure curve as persisted: fit mode tag + boundary-anchored points."""
    model_config = ConfigDict(extra="ignore")

    fit_mode: str = Field("power", description="Fit policy that produced the curve")
    points: List[Tuple[float, float]] = Field(..., description="(x, y) control points")

    @field_validator('points')
    @classmethod
    def validate_points(cls, v: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        if len(v) < 2:
            raise ValueError(f"Curve needs at least 2 points, got {len(v)}")
        for x, y in v:
            if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
                raise ValueError(f"Point ({x}, {y}) outside [0, 1] x [0, 1]")
        xs = [x for x, _ in v]
        if any(b <= a for a, b in zip(xs, xs[1:])):
            raise ValueError(f"Curve x values must be strictly increasing: {xs}")
        if xs[0] != 0.0 or xs[-1] != 1.0:
            raise ValueError(
                f"Curve must span x=0 to x=1, got {xs[0]} to {xs[-1]}"
            )
        return v


class BrushCurveRecordV1(CurveRecordV1):
    """Curve stored for a single brush."""

    brush: str = Field(..., description="Brush display name")
    uid: Optional[str] = Field(None, description="Stable brush identifier, if the host has one")

    @field_validator('brush')
    @classmethod
    def validate_brush(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Brush name must be non-empty")
        return v


# ============================================================================
# STORE FILE
# ============================================================================

class CurveStoreFileV1(BaseModel):
    """Top-level store document (curve_store.v1)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schema_version: str = Field(STORE_SCHEMA, alias="schema", description="Schema version")
    enabled: Any = Field(True, description="Custom curves enabled")
    power: Any = Field(None, description="Stylus editor power setting")
    global_default: Optional[Any] = Field(None, description="Global default curve record")
    brushes: Any = Field(default_factory=list, description="Per-brush curve records")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != STORE_SCHEMA:
            raise ValueError(f"Expected schema '{STORE_SCHEMA}', got '{v}'")
        return v

    @field_validator('brushes', mode='before')
    @classmethod
    def validate_brushes(cls, v: Any) -> Any:
        if v is None:
            return []
        return v
