from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


SCORE_CATEGORIES: tuple[str, ...] = ("spots", "wrinkles", "sagging", "pores", "redness")
TIER_KEYS: tuple[str, ...] = ("light", "standard", "aggressive")

ScoreCategory = Literal["spots", "wrinkles", "sagging", "pores", "redness"]
Grade = Literal["A", "B", "C", "D"]


class DominantColor(BaseModel):
    model_config = ConfigDict(frozen=True)

    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0


class ImageSignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    dominant_color: Optional[DominantColor] = None
    face_detected: bool = False
    detection_confidence: float = 0.0
    roll_angle_degrees: Optional[float] = None


class AggregateFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    avg_brightness: float = Field(default=0.5, ge=0.0, le=1.0)
    brightness_variance: float = Field(default=0.0, ge=0.0)
    avg_redness_ratio: float = Field(default=0.3, ge=0.0, le=1.0)
    contrast: float = Field(default=0.0, ge=0.0, le=1.0)
    texture: float = Field(default=0.4, ge=0.0, le=1.0)
    detection_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    is_face_tilted: bool = False


class ScoreSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    spots: int
    wrinkles: int
    sagging: int
    pores: int
    redness: int
    overall: int
    grades: dict[str, Grade]

    def as_scores(self) -> dict[str, int]:
        return {
            "overall": self.overall,
            "spots": self.spots,
            "wrinkles": self.wrinkles,
            "sagging": self.sagging,
            "pores": self.pores,
            "redness": self.redness,
        }


class PriceCatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    category: ScoreCategory
    name: str = Field(min_length=1)
    unit: str
    price: int = Field(ge=0, validation_alias=AliasChoices("price", "price_jpy"))


class PlanItem(BaseModel):
    category: str = ""
    name: str = ""
    unit: str = ""
    price: Union[int, float] = 0
    sessions: int = Field(default=1, ge=1)
    reason: str = ""


class Plan(BaseModel):
    light: list[PlanItem] = Field(default_factory=list)
    standard: list[PlanItem] = Field(default_factory=list)
    aggressive: list[PlanItem] = Field(default_factory=list)
    notes: str = ""

    def tiers(self) -> dict[str, list[PlanItem]]:
        return {"light": self.light, "standard": self.standard, "aggressive": self.aggressive}

    def item_count(self) -> int:
        return len(self.light) + len(self.standard) + len(self.aggressive)


class DiagnoseRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    images: list[str] = Field(validation_alias=AliasChoices("images", "images_b64"))
    age: Optional[float] = Field(default=None, ge=0, le=150)
    sex: Optional[str] = None


class PlanRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    age: Optional[float] = Field(default=None, ge=0, le=150)
    sex: Optional[str] = None
    concerns: list[str] = Field(default_factory=list)
    scores: dict[str, Union[int, float]] = Field(default_factory=dict)
    grades: dict[str, str] = Field(default_factory=dict)
    extra_note: Optional[str] = Field(default=None, validation_alias=AliasChoices("extraNote", "extra_note"))
