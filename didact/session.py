"""
Tutorial session: the commands the front-end (CLI, interactive mode) calls.

A session owns the currently open tutorial, its view, the named terminals and
the tutorial tree. Opening a tutorial either fully succeeds or raises
(FetchError/NotFoundError/ParseError); actions dispatched afterwards never
raise, their failures are reported at the link.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from didact.capabilities import register_builtins
from didact.dispatch import RESOURCES_DIR, ActionDispatcher, ActionOutcome, CapabilityRegistry, DispatchContext
from didact.document import TutorialDocument, load_tutorial
from didact.errors import DispatchError, NotFoundError
from didact.links import ExtractionMode, parse_action_href
from didact.model import ActionDescriptor, TutorialRegistration
from didact.registry import TutorialRegistry
from didact.scaffold import ScaffoldResult, scaffold_project
from didact.settings import (
    FETCH_TIMEOUT_SETTING,
    REQUIREMENT_TIMEOUT_SETTING,
    SettingsStore,
    get_default_url,
    get_timeout,
    is_notification_disabled,
)
from didact.terminals import TerminalManager
from didact.tree import TutorialTreeModel
from didact.view import DocumentView
from didact.workspace import Workspace

logger = logging.getLogger(__name__)

DEMO_TUTORIAL = RESOURCES_DIR / "demo.didact.md"


@dataclass
class ValidationReport:
    """
    Result of validating every requirement of a document. Each requirement is
    checked on its own; all failures are listed.
    """

    outcomes: List[ActionOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if o.failed or o.result is False]

    @property
    def ok(self) -> bool:
        return not self.failures

    def messages(self) -> List[str]:
        out: List[str] = []
        for o in self.failures:
            name = o.action.requirement_id or o.action.describe()
            out.append(f"{name}: {o.error}" if o.error else f"{name}: unavailable")
        return out


class TutorialSession:
    def __init__(
        self,
        settings: SettingsStore,
        workspace: Optional[Workspace] = None,
        terminals: Optional[TerminalManager] = None,
        capabilities: Optional[CapabilityRegistry] = None,
        resources_dir: Path = RESOURCES_DIR,
    ) -> None:
        self.settings = settings
        self.workspace = workspace or Workspace()
        root = self.workspace.root
        self.terminals = terminals or TerminalManager(cwd=str(root) if root is not None else None)
        self.capabilities = capabilities or register_builtins(CapabilityRegistry())
        self.resources_dir = resources_dir
        self.registry = TutorialRegistry(settings)
        self.tree = TutorialTreeModel(self.registry, loader=self.load)
        self.registry.add_listener(self.tree.refresh)
        self.document: Optional[TutorialDocument] = None
        self.view: Optional[DocumentView] = None
        self._cancel = asyncio.Event()
        self._register_commands()

    # -- plumbing ---------------------------------------------------------

    async def load(self, uri: str) -> TutorialDocument:
        return await load_tutorial(uri, timeout=get_timeout(self.settings, FETCH_TIMEOUT_SETTING))

    def context(self) -> DispatchContext:
        return DispatchContext(
            workspace=self.workspace,
            terminals=self.terminals,
            view=self.view,
            settings=self.settings,
            resources_dir=self.resources_dir,
            probe_timeout=get_timeout(self.settings, REQUIREMENT_TIMEOUT_SETTING),
        )

    def dispatcher(self) -> ActionDispatcher:
        return ActionDispatcher(self.capabilities, self.context())

    def _require_document(self) -> TutorialDocument:
        if self.document is None:
            raise DispatchError("No tutorial is open")
        return self.document

    def _register_commands(self) -> None:
        reg = self.capabilities

        @reg.capability("didact.openTutorial")
        async def _open(ctx: DispatchContext, uri: Optional[str] = None) -> str:
            return (await self.open_tutorial(uri)).uri

        @reg.capability("didact.startDidact")
        async def _start(ctx: DispatchContext, path: str) -> str:
            return (await self.start_tutorial_from_file(path)).uri

        @reg.capability("didact.reload")
        async def _reload(ctx: DispatchContext) -> str:
            return (await self.reload()).uri

        @reg.capability("didact.register")
        async def _register(ctx: DispatchContext, name: str, uri: str, category: str) -> TutorialRegistration:
            return self.register_tutorial(name, uri, category)

        @reg.capability("didact.view.refresh")
        async def _refresh(ctx: DispatchContext) -> None:
            self.refresh_view()

        @reg.capability("didact.validateAllRequirements")
        async def _validate(ctx: DispatchContext) -> ValidationReport:
            return await self.validate_all_requirements()

        @reg.capability("didact.gatherAllRequirements")
        async def _gather_requirements(ctx: DispatchContext) -> List[str]:
            return [a.href for a in self.gather_all_requirements()]

        @reg.capability("didact.gatherAllCommands")
        async def _gather_commands(ctx: DispatchContext) -> List[str]:
            return [a.href for a in self.gather_all_commands()]

    # -- opening tutorials --------------------------------------------------

    async def open_tutorial(self, uri: Optional[str] = None) -> TutorialDocument:
        """
        Open a tutorial; without a URI the configured default (or the
        bundled demo) is used.
        """
        target = uri or get_default_url(self.settings) or str(DEMO_TUTORIAL)
        doc = await self.load(target)
        self.document = doc
        self.view = DocumentView(doc.tree, notifications_disabled=is_notification_disabled(self.settings))
        self._cancel = asyncio.Event()
        logger.info("Opened tutorial %s", target)
        return doc

    async def start_tutorial_from_file(self, path: str | Path) -> TutorialDocument:
        file_path = Path(path)
        if not file_path.is_file():
            raise NotFoundError(f"Tutorial file not found: {file_path}")
        return await self.open_tutorial(str(file_path.resolve()))

    async def reload(self) -> TutorialDocument:
        return await self.open_tutorial(self._require_document().uri)

    def close(self) -> None:
        """
        Stop dispatching further actions. Nothing already done is undone.
        """
        self._cancel.set()
        self.document = None
        self.view = None

    async def shutdown(self) -> None:
        self.close()
        await self.terminals.close_all()

    # -- registry / tree --------------------------------------------------

    def register_tutorial(self, name: str, uri: str, category: str) -> TutorialRegistration:
        return self.registry.register(name, uri, category)

    def refresh_view(self) -> None:
        self.tree.refresh()

    # -- direct commands --------------------------------------------------

    async def scaffold_from_file(self, path: str | Path) -> ScaffoldResult:
        return await asyncio.to_thread(scaffold_project, path, self.workspace.root)

    async def start_terminal(self, name: str) -> None:
        await self.terminals.start(name)

    async def send_terminal_text(self, name: str, text: str) -> None:
        await self.terminals.send_text(name, text)

    async def interrupt_terminal(self, name: str) -> None:
        await self.terminals.interrupt(name)

    async def close_terminal(self, name: str) -> None:
        await self.terminals.close(name)

    # -- actions ------------------------------------------------------------

    async def run_action(self, action: ActionDescriptor) -> ActionOutcome:
        return await self.dispatcher().dispatch(action)

    async def run_link(self, href: str) -> ActionOutcome:
        """
        Dispatch a link by its href, attributing the outcome to the matching
        link of the open document when there is one.
        """
        if self.document is not None:
            for action in self.document.actions():
                if action.href == href:
                    return await self.run_action(action)
        return await self.run_action(parse_action_href(href, index=-1))

    async def run_all(self, cancel: Optional[asyncio.Event] = None) -> List[ActionOutcome]:
        doc = self._require_document()
        return await self.dispatcher().run(doc.actions(ExtractionMode.ALL), cancel or self._cancel)

    def gather_all_requirements(self) -> List[ActionDescriptor]:
        return self._require_document().actions(ExtractionMode.REQUIREMENTS)

    def gather_all_commands(self) -> List[ActionDescriptor]:
        return self._require_document().actions(ExtractionMode.COMMANDS)

    async def validate_all_requirements(self) -> ValidationReport:
        requirements = self.gather_all_requirements()
        dispatcher = self.dispatcher()
        report = ValidationReport()
        for action in requirements:
            report.outcomes.append(await dispatcher.dispatch(action))
        if report.ok:
            logger.info("All %d requirements satisfied", len(requirements))
        else:
            logger.warning("Unsatisfied requirements: %s", "; ".join(report.messages()))
        return report
