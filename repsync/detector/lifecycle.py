"""Pose detector lifecycle.

:class:`DetectorLifecycle` drives the one-time setup sequence for a detector
session::

    uninitialized -> awaiting_permission -> permission_denied
                                         -> loading_backend -> loading_model -> ready
                                                                             -> failed

``ready``, ``permission_denied`` and ``failed`` end the sequence. A new session
starts only through another :meth:`DetectorLifecycle.initialize` call, which
tears the previous one down first. The lifecycle is the only owner of the
state and of the :class:`DetectorHandle`; consumers read them through
:meth:`DetectorLifecycle.current_state` and :attr:`DetectorLifecycle.detector`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Protocol, Sequence, Set

from repsync.config import DetectorConfig
from repsync.detector.backends import ComputeBackend, select_backend
from repsync.vision.landmarks import Landmark

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_PERMISSION = "awaiting_permission"
    PERMISSION_DENIED = "permission_denied"
    LOADING_BACKEND = "loading_backend"
    LOADING_MODEL = "loading_model"
    READY = "ready"
    FAILED = "failed"


TERMINAL_STATES = frozenset(
    {LifecycleState.PERMISSION_DENIED, LifecycleState.READY, LifecycleState.FAILED}
)

_TRANSITIONS: Dict[LifecycleState, FrozenSet[LifecycleState]] = {
    LifecycleState.UNINITIALIZED: frozenset({LifecycleState.AWAITING_PERMISSION}),
    LifecycleState.AWAITING_PERMISSION: frozenset(
        {LifecycleState.PERMISSION_DENIED, LifecycleState.LOADING_BACKEND, LifecycleState.FAILED}
    ),
    LifecycleState.LOADING_BACKEND: frozenset({LifecycleState.LOADING_MODEL, LifecycleState.FAILED}),
    LifecycleState.LOADING_MODEL: frozenset({LifecycleState.READY, LifecycleState.FAILED}),
}


class BackendUnavailable(RuntimeError):
    """Raised by a backend preparer when the compute backend cannot be used."""


class ModelLoadFailure(RuntimeError):
    """Raised by a model factory when the pose model cannot be constructed."""


class DetectorNotReadyError(RuntimeError):
    """Raised when a frame is requested while the detector is not ready."""

    def __init__(self, status: "LifecycleStatus") -> None:
        detail = f"pose detector is not ready (state: {status.state.value})"
        if status.reason:
            detail = f"{detail}: {status.reason}"
        super().__init__(detail)
        self.status = status


class DetectorDisposedError(RuntimeError):
    """Raised when a disposed detector handle is used."""


@dataclass(frozen=True)
class LifecycleStatus:
    """Snapshot of the lifecycle state.

    ``reason`` carries the originating error message for ``failed`` only;
    ``backend`` is set once backend selection has happened.
    """

    state: LifecycleState
    reason: Optional[str] = None
    backend: Optional[ComputeBackend] = None

    @property
    def is_ready(self) -> bool:
        return self.state is LifecycleState.READY

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class PermissionSource(Protocol):
    async def request_permission(self) -> bool: ...


class PoseModel(Protocol):
    def detect(self, image: Any) -> Optional[Sequence[Optional[Landmark]]]: ...

    def close(self) -> None: ...


class BackendPreparer(Protocol):
    async def prepare(self, backend: ComputeBackend) -> None: ...


class ModelFactory(Protocol):
    async def load(self, config: DetectorConfig, backend: ComputeBackend) -> PoseModel: ...


class StaticPermission:
    """Permission source with a fixed answer (headless and server use)."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted

    async def request_permission(self) -> bool:
        return self.granted


class DetectorHandle:
    """Live capability to request landmark frames from a loaded model."""

    def __init__(self, model: PoseModel, backend: ComputeBackend) -> None:
        self._model = model
        self.backend = backend
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def detect(self, image: Any) -> Optional[Sequence[Optional[Landmark]]]:
        """Run the model on one RGB image and return its landmark frame."""
        if self._disposed:
            raise DetectorDisposedError("detector handle has been disposed")
        return self._model.detect(image)

    def dispose(self) -> None:
        """Release the model. Repeated calls are no-ops; close errors are logged."""
        if self._disposed:
            return
        self._disposed = True
        try:
            self._model.close()
        except Exception:  # noqa: BLE001 - disposal is never an error for the caller
            logger.exception("Pose model failed to close (%s backend)", self.backend.value)


Listener = Callable[[LifecycleStatus], None]


class DetectorLifecycle:
    """Owns the detector setup sequence, its state, and its handle.

    Args:
        permissions: Capture permission collaborator.
        preparer: Warms up the selected compute backend.
        factory: Builds the pose model for a backend.
        config: Detector configuration; ``config.platform`` feeds the
            backend policy.
        backend_policy: Maps a platform identifier to a compute backend.
    """

    def __init__(
        self,
        permissions: PermissionSource,
        preparer: BackendPreparer,
        factory: ModelFactory,
        config: Optional[DetectorConfig] = None,
        *,
        backend_policy: Callable[[str], ComputeBackend] = select_backend,
    ) -> None:
        self._permissions = permissions
        self._preparer = preparer
        self._factory = factory
        self.config = config or DetectorConfig()
        self._backend_policy = backend_policy

        self._status = LifecycleStatus(LifecycleState.UNINITIALIZED)
        self._handle: Optional[DetectorHandle] = None
        self._session = 0
        self._pending: Optional["asyncio.Task[LifecycleStatus]"] = None
        # Sequences invalidated by teardown keep running until their current
        # step resolves; hold references so their results can be discarded.
        self._orphans: Set["asyncio.Task[LifecycleStatus]"] = set()
        self._listeners: List[Listener] = []

    def current_state(self) -> LifecycleStatus:
        return self._status

    @property
    def detector(self) -> Optional[DetectorHandle]:
        """The live handle while ready, otherwise ``None``."""
        return self._handle

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked with every new status."""
        self._listeners.append(listener)

    async def initialize(self, *, reload: bool = False) -> LifecycleStatus:
        """Run the setup sequence and return the resulting status.

        Calls made while a sequence is in flight join it instead of starting
        another. When already ready the call is a no-op unless ``reload`` is
        set, in which case the current session is torn down and replaced.
        Failures are recorded in the returned status, never raised.
        """

        if self._pending is not None and not self._pending.done():
            logger.debug("Detector initialization already in progress; joining it")
            return await asyncio.shield(self._pending)
        if self._status.is_ready and not reload:
            return self._status

        self.teardown()
        self._session += 1
        self._pending = asyncio.ensure_future(self._run_session(self._session))
        return await asyncio.shield(self._pending)

    def teardown(self) -> None:
        """End the current session and dispose the handle, if any.

        Safe at any point, including while a setup step is pending: the
        pending step's late result is discarded.
        """

        self._session += 1
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            self._orphans.add(pending)
            pending.add_done_callback(self._orphans.discard)

        handle, self._handle = self._handle, None
        try:
            if handle is not None:
                handle.dispose()
                logger.info("Disposed pose detector (%s backend)", handle.backend.value)
        finally:
            if self._status.state is not LifecycleState.UNINITIALIZED:
                self._publish(LifecycleStatus(LifecycleState.UNINITIALIZED))

    async def __aenter__(self) -> "DetectorLifecycle":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.teardown()

    async def _run_session(self, session: int) -> LifecycleStatus:
        # Listeners may tear the session down on any transition, so every
        # step re-checks the session before doing more work.
        self._transition(session, LifecycleState.AWAITING_PERMISSION)
        if not self._is_current(session):
            return self._status
        try:
            granted = await self._permissions.request_permission()
        except Exception as exc:  # noqa: BLE001 - stored as terminal state
            return self._fail(session, exc)
        if not self._is_current(session):
            return self._status
        if not granted:
            logger.warning("Capture permission denied; pose detector not started")
            self._transition(session, LifecycleState.PERMISSION_DENIED)
            return self._status

        try:
            backend = self._backend_policy(self.config.platform)
            self._transition(session, LifecycleState.LOADING_BACKEND, backend=backend)
            if not self._is_current(session):
                return self._status
            await self._preparer.prepare(backend)
        except Exception as exc:  # noqa: BLE001 - stored as terminal state
            return self._fail(session, exc)
        if not self._is_current(session):
            return self._status

        self._transition(session, LifecycleState.LOADING_MODEL, backend=backend)
        if not self._is_current(session):
            return self._status
        try:
            model = await self._factory.load(self.config, backend)
        except Exception as exc:  # noqa: BLE001 - stored as terminal state
            return self._fail(session, exc)

        handle = DetectorHandle(model, backend)
        if not self._is_current(session):
            logger.warning("Discarding pose model that finished loading after teardown")
            handle.dispose()
            return self._status

        self._handle = handle
        self._transition(session, LifecycleState.READY, backend=backend)
        return self._status

    def _is_current(self, session: int) -> bool:
        return session == self._session

    def _fail(self, session: int, exc: BaseException) -> LifecycleStatus:
        if not self._is_current(session):
            logger.debug("Ignoring failure from a torn-down session: %s", exc)
            return self._status
        reason = str(exc) or exc.__class__.__name__
        logger.error("Pose detector setup failed: %s", reason)
        self._transition(session, LifecycleState.FAILED, reason=reason, backend=self._status.backend)
        return self._status

    def _transition(
        self,
        session: int,
        state: LifecycleState,
        *,
        reason: Optional[str] = None,
        backend: Optional[ComputeBackend] = None,
    ) -> None:
        if not self._is_current(session):
            return
        allowed = _TRANSITIONS.get(self._status.state, frozenset())
        if state not in allowed:
            raise RuntimeError(
                f"Illegal detector transition {self._status.state.value} -> {state.value}"
            )
        logger.info("Pose detector state: %s -> %s", self._status.state.value, state.value)
        self._publish(LifecycleStatus(state, reason=reason, backend=backend))

    def _publish(self, status: LifecycleStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            # A listener moved the lifecycle on; the rest already saw the newer status.
            if self._status is not status:
                break
            try:
                listener(status)
            except Exception:  # noqa: BLE001 - a listener must not break the sequence
                logger.exception("Lifecycle listener failed for state %s", status.state.value)
