"""
Error taxonomy.

Fetch and parse errors are fatal to opening a tutorial (there is no document
to show). Scaffold, workspace and dispatch errors stay local to the action
that raised them.
"""

from __future__ import annotations


class DidactError(Exception):
    """
    Base class for every error raised by the tutorial engine.
    """


class ParseError(DidactError):
    """
    Malformed markup. The message is shown verbatim to the author.
    """


class FetchError(DidactError):
    """
    The tutorial document could not be retrieved.
    """


class NotFoundError(FetchError):
    """
    A local tutorial file does not exist.
    """


class DuplicateTutorialError(DidactError):
    """
    A tutorial with the same name and category is already registered.
    """


class ScaffoldError(DidactError):
    pass


class NoWorkspaceError(DidactError):
    pass


class DispatchError(DidactError):
    """
    Unknown or malformed action target, or a bad parameter list.
    """
