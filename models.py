"""Models for declarative pipeline evaluation (requests, results, metrics)."""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from datetime import datetime
from enum import Enum


MAX_SOURCE_ITEMS = 100_000

Number = Union[int, float]


class StageType(str, Enum):
    """Generator -> generator stages."""
    TRANSFORMS = "transforms"
    FILTERS = "filters"
    EXTRACT = "extract"
    ENUMERATE = "enumerate"
    TAKE = "take"
    SKIP = "skip"


class TerminalType(str, Enum):
    """Operations that finish a pipeline."""
    LIST = "list"
    COLLECT = "collect"
    COUNT = "count"
    ALL = "all"
    NONE = "none"
    ANY = "any"
    POSITION = "position"
    FIND = "find"


class TransformOp(str, Enum):
    """Element mappings available to transforms stages."""
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    FLOORDIV = "floordiv"
    MOD = "mod"
    NEG = "neg"
    SQUARE = "square"
    RAISE_ON = "raise_on"


class PredicateOp(str, Enum):
    """Element tests available to filters/extract stages and terminals."""
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    EVEN = "even"
    ODD = "odd"
    DIVISIBLE_BY = "divisible_by"


class ContainerType(str, Enum):
    """Target containers for the collect and list terminals."""
    SET = "set"
    LIST = "list"
    DEQUE = "deque"


UNARY_TRANSFORMS = {TransformOp.NEG, TransformOp.SQUARE}
UNARY_PREDICATES = {PredicateOp.EVEN, PredicateOp.ODD}
PREDICATE_TERMINALS = {
    TerminalType.ALL, TerminalType.NONE, TerminalType.ANY,
    TerminalType.POSITION, TerminalType.FIND,
}
TERMINAL_CONTAINERS = {
    TerminalType.COLLECT: {ContainerType.SET},
    TerminalType.LIST: {ContainerType.LIST, ContainerType.DEQUE},
}


class RangeSpec(BaseModel):
    """Arithmetic progression source."""
    start: int = Field(..., description="First value")
    stop: int = Field(..., description="Bound (exclusive)")
    step: int = Field(1, description="Increment; 0 produces nothing")


class StageSpec(BaseModel):
    """One declarative pipeline stage."""
    type: StageType = Field(..., description="Stage operation")
    transform: Optional[TransformOp] = Field(None, description="Mapping for transforms stages")
    predicate: Optional[PredicateOp] = Field(None, description="Test for filters/extract stages")
    operand: Optional[Number] = Field(None, description="Right-hand operand of the op")
    count: Optional[int] = Field(None, description="Element count for take/skip", ge=0)

    @model_validator(mode='after')
    def validate_stage_params(self):
        """Each stage type needs its own parameters."""
        if self.type == StageType.TRANSFORMS:
            if self.transform is None:
                raise ValueError("transforms stage requires 'transform'")
            if self.transform not in UNARY_TRANSFORMS and self.operand is None:
                raise ValueError(f"transform '{self.transform.value}' requires 'operand'")
        elif self.type in (StageType.FILTERS, StageType.EXTRACT):
            _check_predicate(self.predicate, self.operand, self.type.value)
        elif self.type in (StageType.TAKE, StageType.SKIP):
            if self.count is None:
                raise ValueError(f"{self.type.value} stage requires 'count'")
        return self


class TerminalSpec(BaseModel):
    """How the pipeline result is produced."""
    type: TerminalType = Field(TerminalType.LIST, description="Terminal operation")
    predicate: Optional[PredicateOp] = Field(None, description="Test for predicate terminals")
    operand: Optional[Number] = Field(None, description="Right-hand operand of the predicate")
    default: Optional[Any] = Field(None, description="find() result when nothing matches")
    container: Optional[ContainerType] = Field(None, description="Target container for collect/list")

    @model_validator(mode='after')
    def validate_terminal_params(self):
        if self.type in PREDICATE_TERMINALS:
            _check_predicate(self.predicate, self.operand, self.type.value)
        if self.container is not None:
            allowed = TERMINAL_CONTAINERS.get(self.type, set())
            if self.container not in allowed:
                raise ValueError(
                    f"container '{self.container.value}' is not valid for a {self.type.value} terminal"
                )
        return self


def _check_predicate(predicate, operand, where):
    if predicate is None:
        raise ValueError(f"{where} requires 'predicate'")
    if predicate not in UNARY_PREDICATES and operand is None:
        raise ValueError(f"predicate '{predicate.value}' requires 'operand'")
    if predicate == PredicateOp.DIVISIBLE_BY and operand == 0:
        raise ValueError("divisible_by operand cannot be 0")


class PipelineRequest(BaseModel):
    """Source + stages + terminal."""
    source: Optional[List[Any]] = Field(
        None,
        description="Literal elements to stream"
    )
    range_spec: Optional[RangeSpec] = Field(
        None,
        alias="range",
        description="Range source used instead of a literal list"
    )
    stages: List[StageSpec] = Field(
        default_factory=list,
        description="Stages applied left to right"
    )
    terminal: TerminalSpec = Field(
        default_factory=TerminalSpec,
        description="Terminal operation"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "source": [1, 2, 3, 4, 5],
                "stages": [
                    {"type": "transforms", "transform": "add", "operand": 1},
                    {"type": "filters", "predicate": "even"},
                    {"type": "take", "count": 2}
                ],
                "terminal": {"type": "list"}
            }
        }
    )

    @field_validator('source')
    @classmethod
    def validate_source_size(cls, v):
        """Cap literal sources."""
        if v is not None and len(v) > MAX_SOURCE_ITEMS:
            raise ValueError(f"source cannot exceed {MAX_SOURCE_ITEMS} items")
        return v

    @model_validator(mode='after')
    def validate_single_source(self):
        """Exactly one of source/range."""
        if (self.source is None) == (self.range_spec is None):
            raise ValueError("Provide exactly one of 'source' or 'range'")
        return self


class PerformanceInfo(BaseModel):
    """Timing/memory of one evaluation."""
    operation: str = Field(..., description="Operation name")
    execution_time_ms: float = Field(..., description="Wall time in milliseconds", ge=0)
    memory_usage_mb: float = Field(..., description="Peak traced memory in MB", ge=0)
    stages: int = Field(0, description="Number of stages applied", ge=0)


class PipelineResponse(BaseModel):
    """Pipeline evaluation result."""
    ok: bool = Field(True, description="Evaluation success status")
    result: Any = Field(..., description="Terminal result")
    performance: Optional[PerformanceInfo] = Field(None, description="Evaluation metrics")
    timestamp: str = Field(..., description="Evaluation timestamp in ISO format")


class MetricsResponse(BaseModel):
    """Aggregated performance of recorded evaluations."""
    total_operations: int = Field(..., ge=0)
    total_time_ms: float = Field(..., ge=0)
    total_memory_mb: float = Field(..., ge=0)
    avg_time_ms: float = Field(..., ge=0)
    avg_memory_mb: float = Field(..., ge=0)


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    ok: bool = Field(False, description="Request success status")
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Error details")
    timestamp: str = Field(..., description="Error timestamp in ISO format")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": False,
                "error": "boom on 3",
                "error_code": "PRODUCTION_FAILURE",
                "details": {"exception": "ValueError"},
                "timestamp": "2024-01-01T12:00:00Z"
            }
        }
    )


class HealthCheckResponse(BaseModel):
    """Health probe result."""
    status: str = Field(..., description="Health status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    checks: Dict[str, bool] = Field(..., description="Individual health check results")
