"""
Pydantic schemas for the beans endpoints.

Request models forbid unknown keys, so only columns of `dry_beans` can ever
reach the SQL layer. Numeric strings are coerced to float; anything else that
is not a number is rejected.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BeanClass(str, Enum):
    DERMASON = "DERMASON"
    SIRA = "SIRA"
    SEKER = "SEKER"
    HOROZ = "HOROZ"
    CALI = "CALI"
    BARBUNYA = "BARBUNYA"
    BOMBAY = "BOMBAY"


# Fields owned by the server; clients may echo them back but never set them.
READ_ONLY_FIELDS = frozenset({"id", "created_at", "updated_at"})

NUMERIC_FIELDS: tuple[str, ...] = (
    "area",
    "perimeter",
    "major_axis_length",
    "minor_axis_length",
    "aspect_ratio",
    "eccentricity",
    "convex_area",
    "equiv_diameter",
    "extent",
    "solidity",
    "roundness",
    "compactness",
    "shape_factor1",
    "shape_factor2",
    "shape_factor3",
    "shape_factor4",
)

# Writable columns, in table order.
BEAN_COLUMNS: tuple[str, ...] = NUMERIC_FIELDS + ("bean_class",)


class _BeanFields(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    area: float | None = Field(default=None, examples=[28395])
    perimeter: float | None = Field(default=None, examples=[610.291])
    major_axis_length: float | None = Field(default=None, examples=[208.178])
    minor_axis_length: float | None = Field(default=None, examples=[173.889])
    aspect_ratio: float | None = Field(default=None, examples=[1.197])
    eccentricity: float | None = Field(default=None, ge=0, le=1, examples=[0.55])
    convex_area: float | None = Field(default=None, examples=[28715])
    equiv_diameter: float | None = Field(default=None, examples=[190.141])
    extent: float | None = Field(default=None, ge=0, le=1, examples=[0.764])
    solidity: float | None = Field(default=None, ge=0, le=1, examples=[0.989])
    roundness: float | None = Field(default=None, ge=0, le=1, examples=[0.958])
    compactness: float | None = Field(default=None, ge=0, le=1, examples=[0.913])
    shape_factor1: float | None = Field(default=None, examples=[0.007])
    shape_factor2: float | None = Field(default=None, examples=[0.003])
    shape_factor3: float | None = Field(default=None, examples=[0.834])
    shape_factor4: float | None = Field(default=None, examples=[0.999])

    @model_validator(mode="before")
    @classmethod
    def _reject_booleans(cls, data: Any) -> Any:
        # float fields would otherwise accept true/false as 1.0/0.0
        if isinstance(data, dict):
            for name in NUMERIC_FIELDS:
                if isinstance(data.get(name), bool):
                    raise ValueError(f"{name} must be a number")
        return data

    def columns(self) -> dict[str, Any]:
        """
        Explicitly supplied fields, keyed by column name.
        """
        return self.model_dump(exclude_unset=True)


class BeanCreate(_BeanFields):
    bean_class: BeanClass = Field(..., examples=["SEKER"])


class BeanUpdate(_BeanFields):
    bean_class: BeanClass | None = Field(default=None, examples=["SEKER"])

    @model_validator(mode="before")
    @classmethod
    def _drop_read_only(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in READ_ONLY_FIELDS}
        return data


class Bean(BaseModel):
    id: int
    area: float | None = None
    perimeter: float | None = None
    major_axis_length: float | None = None
    minor_axis_length: float | None = None
    aspect_ratio: float | None = None
    eccentricity: float | None = None
    convex_area: float | None = None
    equiv_diameter: float | None = None
    extent: float | None = None
    solidity: float | None = None
    roundness: float | None = None
    compactness: float | None = None
    shape_factor1: float | None = None
    shape_factor2: float | None = None
    shape_factor3: float | None = None
    shape_factor4: float | None = None
    bean_class: str
    created_at: datetime
    updated_at: datetime


class BeanSummary(BaseModel):
    id: int
    bean_class: str


class ProbeResponse(BaseModel):
    success: bool
    message: str
    time: datetime | None = None
    db_size: int | None = None
