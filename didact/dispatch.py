"""
Action dispatcher.

Each action goes Pending -> Resolving-Parameters -> Invoking -> Succeeded or
Failed. A failed action is terminal for that action only: the dispatcher
records the failure at the originating link and returns, so the rest of the
tutorial keeps going. Actions of one run are dispatched strictly one after
the other.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from didact.errors import DidactError, DispatchError
from didact.links import canonical_capability
from didact.model import ActionDescriptor
from didact.settings import MemorySettingsStore, SettingsStore
from didact.terminals import TerminalManager
from didact.view import DocumentView
from didact.workspace import Workspace

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).resolve().parent / "data"

Capability = Callable[..., Awaitable[Any]]


class ActionState(str, Enum):
    PENDING = "pending"
    RESOLVING_PARAMETERS = "resolving-parameters"
    INVOKING = "invoking"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ActionOutcome:
    action: ActionDescriptor
    state: ActionState = ActionState.PENDING
    result: Any = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is ActionState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.state is ActionState.FAILED


@dataclass
class DispatchContext:
    """
    Everything a capability may touch.
    """

    workspace: Workspace = field(default_factory=Workspace)
    terminals: TerminalManager = field(default_factory=TerminalManager)
    view: Optional[DocumentView] = None
    settings: SettingsStore = field(default_factory=MemorySettingsStore)
    resources_dir: Path = RESOURCES_DIR
    probe_timeout: float = 30.0


class CapabilityRegistry:
    """
    Dotted capability id -> async callable taking (context, *parameters).
    """

    def __init__(self) -> None:
        self._capabilities: Dict[str, Capability] = {}

    def register(self, name: str, func: Capability) -> None:
        self._capabilities[canonical_capability(name)] = func

    def capability(self, name: str) -> Callable[[Capability], Capability]:
        def decorator(func: Capability) -> Capability:
            self.register(name, func)
            return func

        return decorator

    def resolve(self, name: str) -> Capability:
        key = canonical_capability(name)
        if not key:
            raise DispatchError("Link does not name a command")
        try:
            return self._capabilities[key]
        except KeyError:
            raise DispatchError(f"Unknown command {name!r}") from None

    def names(self) -> List[str]:
        return sorted(self._capabilities)

    def __contains__(self, name: str) -> bool:
        return canonical_capability(name) in self._capabilities


def check_arity(name: str, func: Capability, params: Sequence[str]) -> None:
    try:
        inspect.signature(func).bind(None, *params)
    except TypeError as exc:
        raise DispatchError(f"Wrong parameters for {name} ({len(params)} given): {exc}") from None


class ActionDispatcher:
    def __init__(self, capabilities: CapabilityRegistry, context: DispatchContext) -> None:
        self.capabilities = capabilities
        self.context = context

    def resolve_parameters(self, action: ActionDescriptor) -> List[str]:
        """
        Positional parameters, with a resolved extFilePath/srcFilePath
        prepended when the link names one.
        """
        params = list(action.parameters)
        ext_path = action.options.get("extFilePath")
        src_path = action.options.get("srcFilePath")
        if ext_path:
            params.insert(0, str(self.context.resources_dir / ext_path))
        elif src_path:
            params.insert(0, str(self.context.workspace.resolve(src_path)))
        return params

    async def dispatch(self, action: ActionDescriptor) -> ActionOutcome:
        """
        Run one action. Never raises for a failing action; the outcome
        carries the error.
        """
        outcome = ActionOutcome(action=action)
        try:
            outcome.state = ActionState.RESOLVING_PARAMETERS
            func = self.capabilities.resolve(action.target_capability)
            params = self.resolve_parameters(action)
            check_arity(action.target_capability, func, params)

            outcome.state = ActionState.INVOKING
            logger.debug("Invoking %s with %r", action.target_capability, params)
            outcome.result = await func(self.context, *params)
        except DidactError as exc:
            self._fail(outcome, str(exc))
        except Exception as exc:
            logger.exception("Action %s raised", action.describe())
            self._fail(outcome, f"{type(exc).__name__}: {exc}")
        else:
            self._succeed(outcome)
        return outcome

    def _succeed(self, outcome: ActionOutcome) -> None:
        action = outcome.action
        outcome.state = ActionState.SUCCEEDED
        view = self.context.view
        if view is None:
            return
        completion = action.options.get("completion")
        message = completion or f"Didact just executed {action.target_capability}"
        view.mark_action(action, True, message)
        view.notify(message, generic=not completion)

    def _fail(self, outcome: ActionOutcome, message: str) -> None:
        action = outcome.action
        custom = action.options.get("error")
        text = f"{custom}: {message}" if custom else message
        outcome.state = ActionState.FAILED
        outcome.error = text
        logger.warning("Action %s failed: %s", action.describe(), text)
        view = self.context.view
        if view is not None:
            view.mark_action(action, False, text)
            view.report_failure(action, text)

    async def run(
        self, actions: Sequence[ActionDescriptor], cancel: Optional[asyncio.Event] = None
    ) -> List[ActionOutcome]:
        """
        Dispatch actions in order, each one settled before the next starts.
        Once 'cancel' is set nothing further is dispatched; actions that were
        not reached stay PENDING. Completed actions are not rolled back.
        """
        outcomes = [ActionOutcome(action=a) for a in actions]
        for i, action in enumerate(actions):
            if cancel is not None and cancel.is_set():
                logger.info("Tutorial closed; %d action(s) not dispatched", len(actions) - i)
                break
            outcomes[i] = await self.dispatch(action)
        return outcomes
