"""
Utility functions for the generator engine

Logging setup, performance measurement, and evaluation of declarative
pipelines (a PipelineRequest turned into real generator stages).
"""

import sys
import time
import tracemalloc
import logging
import operator
from collections import deque
from typing import Any, Callable, Dict, Tuple

import pipeline
from lazy import Generator, generator_of
from ranges import ranges_of
from models import (
    PipelineRequest, StageSpec, TerminalSpec, PerformanceInfo,
    StageType, TerminalType, TransformOp, PredicateOp, ContainerType
)

logger = logging.getLogger(__name__)


class PipelineSpecError(ValueError):
    """Raised when a declarative pipeline cannot be built."""
    pass


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Setup structured logging for the generator engine"""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    return logging.getLogger('generators')


# ---------- Performance tracking ----------

_performance_metrics = {
    "operations": [],
    "total_time_ms": 0.0,
    "total_memory_mb": 0.0,
    "operation_count": 0
}


def _record(info: Dict[str, Any]) -> None:
    _performance_metrics["operations"].append(info)
    _performance_metrics["total_time_ms"] += info["execution_time_ms"]
    _performance_metrics["total_memory_mb"] += info["memory_usage_mb"]
    _performance_metrics["operation_count"] += 1


def measure_performance(operation_name: str, func: Callable, *args, **kwargs) -> Tuple[Any, Dict[str, Any]]:
    """Run func, returning its result plus timing and peak memory info"""
    # Callers may already be tracing (memory tests); leave their session running.
    owns_tracing = not tracemalloc.is_tracing()
    if owns_tracing:
        tracemalloc.start()
    else:
        tracemalloc.reset_peak()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
        info = _performance_info(operation_name, start_time, success=True)
        info["result_size"] = len(result) if hasattr(result, "__len__") else None
        _record(info)
        return result, info
    except Exception as e:
        info = _performance_info(operation_name, start_time, success=False)
        info["error"] = str(e)
        _record(info)
        raise
    finally:
        if owns_tracing:
            tracemalloc.stop()


def _performance_info(operation_name: str, start_time: float, success: bool) -> Dict[str, Any]:
    execution_time_ms = (time.perf_counter() - start_time) * 1000
    peak = tracemalloc.get_traced_memory()[1]
    return {
        "operation": operation_name,
        "execution_time_ms": execution_time_ms,
        "memory_usage_mb": peak / 1024 / 1024,
        "success": success,
        "timestamp": time.time()
    }


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all performance metrics"""
    count = _performance_metrics["operation_count"]
    if count == 0:
        return {
            "total_operations": 0,
            "total_time_ms": 0.0,
            "total_memory_mb": 0.0,
            "avg_time_ms": 0.0,
            "avg_memory_mb": 0.0
        }

    return {
        "total_operations": count,
        "total_time_ms": _performance_metrics["total_time_ms"],
        "total_memory_mb": _performance_metrics["total_memory_mb"],
        "avg_time_ms": _performance_metrics["total_time_ms"] / count,
        "avg_memory_mb": _performance_metrics["total_memory_mb"] / count
    }


def clear_performance_metrics():
    """Clear all performance metrics"""
    global _performance_metrics
    _performance_metrics = {
        "operations": [],
        "total_time_ms": 0.0,
        "total_memory_mb": 0.0,
        "operation_count": 0
    }


# ---------- Declarative operations ----------

def _raise_on(operand):
    def check(x):
        if x == operand:
            raise ValueError(f"Refusing to transform {x!r}")
        return x
    return check


TRANSFORMS: Dict[TransformOp, Callable[[Any], Callable[[Any], Any]]] = {
    TransformOp.ADD: lambda v: lambda x: x + v,
    TransformOp.SUB: lambda v: lambda x: x - v,
    TransformOp.MUL: lambda v: lambda x: x * v,
    TransformOp.FLOORDIV: lambda v: lambda x: x // v,
    TransformOp.MOD: lambda v: lambda x: x % v,
    TransformOp.NEG: lambda v: operator.neg,
    TransformOp.SQUARE: lambda v: lambda x: x * x,
    TransformOp.RAISE_ON: _raise_on,
}

PREDICATES: Dict[PredicateOp, Callable[[Any], Callable[[Any], bool]]] = {
    PredicateOp.EQ: lambda v: lambda x: x == v,
    PredicateOp.NE: lambda v: lambda x: x != v,
    PredicateOp.LT: lambda v: lambda x: x < v,
    PredicateOp.LE: lambda v: lambda x: x <= v,
    PredicateOp.GT: lambda v: lambda x: x > v,
    PredicateOp.GE: lambda v: lambda x: x >= v,
    PredicateOp.EVEN: lambda v: lambda x: x % 2 == 0,
    PredicateOp.ODD: lambda v: lambda x: x % 2 != 0,
    PredicateOp.DIVISIBLE_BY: lambda v: lambda x: x % v == 0,
}

CONTAINERS: Dict[ContainerType, Callable[[], Any]] = {
    ContainerType.SET: set,
    ContainerType.LIST: list,
    ContainerType.DEQUE: deque,
}


def build_stage(spec: StageSpec) -> pipeline.GenPipe:
    """Turn a StageSpec into a deferred pipeline stage"""
    if spec.type == StageType.TRANSFORMS:
        return pipeline.transforms(TRANSFORMS[spec.transform](spec.operand))
    if spec.type == StageType.FILTERS:
        return pipeline.filters(PREDICATES[spec.predicate](spec.operand))
    if spec.type == StageType.EXTRACT:
        return pipeline.extract(PREDICATES[spec.predicate](spec.operand))
    if spec.type == StageType.ENUMERATE:
        return pipeline.enumerate()
    if spec.type == StageType.TAKE:
        return pipeline.take(spec.count)
    if spec.type == StageType.SKIP:
        return pipeline.skip(spec.count)
    raise PipelineSpecError(f"Unknown stage: {spec.type}")


def build_terminal(spec: TerminalSpec) -> pipeline.GenPipe:
    """Turn a TerminalSpec into the stage that finishes the pipeline"""
    if spec.type == TerminalType.LIST:
        return pipeline.list(CONTAINERS[spec.container or ContainerType.LIST])
    if spec.type == TerminalType.COLLECT:
        return pipeline.collect(CONTAINERS[spec.container or ContainerType.SET])
    if spec.type == TerminalType.COUNT:
        if spec.predicate is None:
            return pipeline.count()
        return pipeline.count(PREDICATES[spec.predicate](spec.operand))

    predicate = PREDICATES[spec.predicate](spec.operand)
    if spec.type == TerminalType.ALL:
        return pipeline.all(predicate)
    if spec.type == TerminalType.NONE:
        return pipeline.none(predicate)
    if spec.type == TerminalType.ANY:
        return pipeline.any(predicate)
    if spec.type == TerminalType.POSITION:
        return pipeline.position(predicate)
    if spec.type == TerminalType.FIND:
        return pipeline.find(predicate, spec.default)
    raise PipelineSpecError(f"Unknown terminal: {spec.type}")


def build_source(request: PipelineRequest) -> Generator:
    if request.range_spec is not None:
        r = request.range_spec
        return ranges_of(r.start, r.stop, r.step)
    return generator_of(request.source)


def run_pipeline(request: PipelineRequest) -> Any:
    """Build the source, pipe it through every stage, apply the terminal"""
    stages = [build_stage(spec) for spec in request.stages]
    terminal = build_terminal(request.terminal)

    gen = build_source(request)
    for stage in stages:
        gen = gen | stage
    result = gen | terminal

    if isinstance(result, (set, frozenset)):
        try:
            return sorted(result)
        except TypeError:
            return list(result)
    if isinstance(result, deque):
        return list(result)
    return result


def evaluate_pipeline(request: PipelineRequest) -> Tuple[Any, PerformanceInfo]:
    """Run a declarative pipeline under performance measurement"""
    operation = f"pipeline_{len(request.stages)}_stages_{request.terminal.type.value}"
    try:
        result, info = measure_performance(operation, run_pipeline, request)
    except Exception as e:
        logger.error(f"Pipeline {operation} failed: {type(e).__name__}: {e}")
        raise

    logger.info(f"Evaluated {operation} in {info['execution_time_ms']:.2f} ms")
    return result, PerformanceInfo(
        operation=operation,
        execution_time_ms=info["execution_time_ms"],
        memory_usage_mb=info["memory_usage_mb"],
        stages=len(request.stages)
    )
