"""
Generator Pipeline Service

Evaluates declarative pipelines over lazy generators:
- literal or range sources
- map/filter/extract/enumerate/take/skip stages chained with the pipe operator
- list/collect/count/all/none/any/position/find terminals
- per-evaluation timing and memory metrics
"""

import datetime
import logging

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from ranges import ranges_of
import pipeline
from utils import (
    setup_logging,
    evaluate_pipeline,
    get_performance_summary,
    PipelineSpecError
)
from models import (
    PipelineRequest,
    PipelineResponse,
    MetricsResponse,
    ErrorResponse,
    HealthCheckResponse
)

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Generator Pipeline Service",
    description="Lazy, composable generator pipelines evaluated on demand",
    version="1.0.0"
)


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _error(status_code: int, error: str, error_code: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            error_code=error_code,
            details=details,
            timestamp=_now()
        ).model_dump()
    )


@app.post("/pipeline", response_model=PipelineResponse)
async def run_pipeline_endpoint(request: PipelineRequest) -> PipelineResponse:
    """
    Build the source generator, thread it through every stage and
    apply the terminal. Nothing is produced until the terminal pulls.
    """
    try:
        result, performance = evaluate_pipeline(request)
    except PipelineSpecError as e:
        return _error(400, str(e), "INVALID_PIPELINE")
    except Exception as e:
        # Failure raised by a stage while producing; surfaced once, as is.
        return _error(
            422,
            str(e),
            "PRODUCTION_FAILURE",
            details={"exception": type(e).__name__}
        )

    return PipelineResponse(
        ok=True,
        result=result,
        performance=performance,
        timestamp=_now()
    )


@app.get("/range")
async def range_endpoint(
    start: int = Query(..., description="First value"),
    stop: int = Query(..., description="Bound (exclusive)"),
    step: int = Query(1, description="Increment; 0 produces nothing"),
    limit: int = Query(10_000, description="Maximum number of values returned", ge=0, le=100_000)
):
    """List an arithmetic progression (at most `limit` values)"""
    values = ranges_of(start, stop, step) | pipeline.take(limit) | pipeline.list()
    return {"ok": True, "values": values, "count": len(values)}


@app.get("/metrics", response_model=MetricsResponse)
async def metrics_endpoint() -> MetricsResponse:
    """Aggregated metrics of the pipelines evaluated so far"""
    return MetricsResponse(**get_performance_summary())


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Basic liveness probe exercising a tiny pipeline"""
    engine_ok = (ranges_of(0, 3) | pipeline.list()) == [0, 1, 2]
    return HealthCheckResponse(
        status="healthy" if engine_ok else "degraded",
        timestamp=datetime.datetime.now(datetime.timezone.utc),
        checks={"generator_engine": engine_ok}
    )
