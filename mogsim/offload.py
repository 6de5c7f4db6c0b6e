"""
Optional offload service for heavy computations.

Hosts that cannot afford to run pathfinding or a full agent phase on their
own event loop can hand the work to an :class:`OffloadService`. The service
owns one ``asyncio.Queue`` and a single worker task that runs each request
in a thread (``asyncio.to_thread``), so responses always arrive in
submission order.

Protocol:
    CALCULATE_PATHS     {start_x, start_y, end_x, end_y, grid[{x, y, is_wall}]} -> {path}
    BATCH_AGENT_UPDATE  {agents, cells, basins, day}
                        -> {updated_agents, updated_cells, updated_basins, events}

Payloads are validated and deep-copied on the way in, so the caller and the
worker never share objects.

Usage pattern:
    async with OffloadService() as service:
        response = await service.calculate_paths(request)
"""

from __future__ import annotations

import asyncio
import contextlib
import random
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError

from mogsim.config import Config
from mogsim.decision import AgentDecisionEngine
from mogsim.environment.grid import MazeGrid
from mogsim.environment.pathfinding import find_path
from mogsim.environment.schemas import Cell, Position
from mogsim.logging_utils import log_info, log_success
from mogsim.orchestrator import refresh_notability, run_agent_phase
from mogsim.schemas import Agent, Basin
from mogsim.world import World

CALCULATE_PATHS = "CALCULATE_PATHS"
BATCH_AGENT_UPDATE = "BATCH_AGENT_UPDATE"


# =============================
# Module-level Exceptions
# =============================


class OffloadUnavailableError(RuntimeError):
    """Raised when a request is submitted while the service is not running."""

    def __init__(self, *, reason: str) -> None:
        self.reason = reason
        message = (
            f"Offload service unavailable: {reason}\n\n"
            "Remediation tips:\n"
            "  - await service.start() or use 'async with OffloadService()' before submitting\n"
            "  - Do not submit requests after shutdown(); create a new service instead"
        )
        super().__init__(message)


class OffloadRequestError(RuntimeError):
    """Raised when a handler fails for one request. Requests are not retried."""

    def __init__(self, *, request_id: str, message_type: str, underlying: Exception) -> None:
        self.request_id = request_id
        self.message_type = message_type
        self.underlying = underlying
        message = (
            f"Offload request {request_id} ({message_type}) failed: {underlying}\n\n"
            "Remediation tips:\n"
            "  - Validate the payload against the request model before submitting\n"
            "  - Run the same computation in-process to reproduce the failure"
        )
        super().__init__(message)


# =============================
# Message schemas
# =============================


class GridCellFlag(BaseModel):
    x: int
    y: int
    is_wall: bool


class CalculatePathsRequest(BaseModel):
    start_x: int
    start_y: int
    end_x: int
    end_y: int
    grid: List[GridCellFlag] = Field(default_factory=list)


class CalculatePathsResponse(BaseModel):
    path: List[Position] = Field(default_factory=list)


class BatchAgentUpdateRequest(BaseModel):
    """Snapshot for one agent phase. ``seed`` makes the batch reproducible."""

    agents: List[Agent] = Field(default_factory=list)
    cells: List[Cell] = Field(default_factory=list)
    basins: List[Basin] = Field(default_factory=list)
    day: int
    seed: Optional[str] = None


class BatchAgentUpdateResponse(BaseModel):
    updated_agents: List[Agent] = Field(default_factory=list)
    updated_cells: List[Cell] = Field(default_factory=list)
    updated_basins: List[Basin] = Field(default_factory=list)
    events: List[str] = Field(default_factory=list)


# =============================
# Handlers (run in a worker thread)
# =============================


def handle_calculate_paths(request: CalculatePathsRequest) -> CalculatePathsResponse:
    """A* over the flattened grid; cells missing from the grid count as walls."""
    open_cells = {(flag.x, flag.y) for flag in request.grid if not flag.is_wall}
    path = find_path(
        Position(x=request.start_x, y=request.start_y),
        Position(x=request.end_x, y=request.end_y),
        lambda x, y: (x, y) in open_cells,
    )
    return CalculatePathsResponse(path=path)


def handle_batch_agent_update(request: BatchAgentUpdateRequest) -> BatchAgentUpdateResponse:
    """Run decay and decisions for every agent on a private copy of the world.

    Dungeons are not part of the snapshot, so no dungeon is ever attempted.
    The request itself is left untouched.
    """
    snapshot = request.model_copy(deep=True)
    grid = _grid_from_cells(snapshot.cells)
    world = World.build(grid, snapshot.basins, (), snapshot.agents, day=snapshot.day)
    rng = random.Random(request.seed) if request.seed is not None else random.Random()

    narrations = run_agent_phase(world, request.day, AgentDecisionEngine(rng))
    refresh_notability(world)

    return BatchAgentUpdateResponse(
        updated_agents=list(world.agents.values()),
        updated_cells=list(grid.iter_cells()),
        updated_basins=list(world.basins.values()),
        events=narrations,
    )


def _grid_from_cells(cells: List[Cell]) -> MazeGrid:
    if not cells:
        return MazeGrid(width=0, height=0, cells=[])
    width = max(cell.x for cell in cells) + 1
    height = max(cell.y for cell in cells) + 1
    grid = MazeGrid.filled(width, height, "wall")
    for cell in cells:
        grid.cells[cell.y][cell.x] = cell
    return grid


HANDLERS: Dict[str, Tuple[Type[BaseModel], Callable[[Any], BaseModel]]] = {
    CALCULATE_PATHS: (CalculatePathsRequest, handle_calculate_paths),
    BATCH_AGENT_UPDATE: (BatchAgentUpdateRequest, handle_batch_agent_update),
}


# =============================
# Service
# =============================


class OffloadService:
    """Serial, thread-backed executor for offload messages.

    Lifecycle is explicit: ``await start()`` before submitting and
    ``await shutdown()`` when done (or use ``async with``). Shutting down
    fails every request still waiting in the queue.
    """

    def __init__(self, verbose: Optional[bool] = None):
        self.verbose = Config.VERBOSE if verbose is None else verbose
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._pending: Dict[str, asyncio.Future] = {}
        self._closed = False

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._closed

    async def start(self) -> None:
        if self._closed:
            raise OffloadUnavailableError(reason="service was shut down")
        if self._worker is not None:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(self._queue))
        if self.verbose:
            log_info("[Offload] Worker started")

    async def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
        for request_id, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(
                    OffloadUnavailableError(reason=f"service shut down before request {request_id} completed")
                )
        if self.verbose:
            log_success("[Offload] Worker stopped")

    async def __aenter__(self) -> "OffloadService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    async def submit(self, message_type: str, payload: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        """Queue one message and wait for its response.

        Raises:
            OffloadUnavailableError: If the service is not running.
            OffloadRequestError: If the payload is invalid or the handler fails.
        """
        if not self.running or self._queue is None:
            raise OffloadUnavailableError(
                reason="service was shut down" if self._closed else "service has not been started"
            )

        request_id = uuid4().hex
        if message_type not in HANDLERS:
            raise OffloadRequestError(
                request_id=request_id,
                message_type=message_type,
                underlying=ValueError(f"unknown message type; expected one of {sorted(HANDLERS)}"),
            )
        request_model, _ = HANDLERS[message_type]
        raw = payload.model_dump() if isinstance(payload, BaseModel) else payload
        try:
            # Model instances inside a dict are not revalidated, so copy them out
            request = request_model.model_validate(raw).model_copy(deep=True)
        except ValidationError as exc:
            raise OffloadRequestError(
                request_id=request_id, message_type=message_type, underlying=exc
            ) from exc

        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        await self._queue.put((request_id, message_type, request, future))
        try:
            return await future
        finally:
            self._pending.pop(request_id, None)

    async def calculate_paths(
        self, request: Union[CalculatePathsRequest, Dict[str, Any]]
    ) -> CalculatePathsResponse:
        return await self.submit(CALCULATE_PATHS, request)

    async def batch_agent_update(
        self, request: Union[BatchAgentUpdateRequest, Dict[str, Any]]
    ) -> BatchAgentUpdateResponse:
        return await self.submit(BATCH_AGENT_UPDATE, request)

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            request_id, message_type, request, future = await queue.get()
            try:
                if future.done():
                    continue
                _, handler = HANDLERS[message_type]
                result = await asyncio.to_thread(handler, request)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if not future.done():
                    future.set_exception(
                        OffloadRequestError(request_id=request_id, message_type=message_type, underlying=exc)
                    )
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                queue.task_done()
