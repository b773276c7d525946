"""Game Designer MCP server: the design workflow exposed as MCP tools."""

import logging
from typing import Awaitable, Callable, Dict, Tuple

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from .errors import GameDesignerError
from .workflow.coordinator import WorkflowCoordinator, get_coordinator

logger = logging.getLogger(__name__)

SERVER_NAME = "game-designer"

INSTRUCTIONS = (
    "This server provides tools for managing a game design process. "
    "You can create design sessions, get an overview, receive the next feature to implement, "
    "submit a review of implemented features, reply to questions from the review, "
    "and ask ad-hoc questions about the current feature or design."
)


async def _run(tool: str, call: Callable[[WorkflowCoordinator], Awaitable[str]]) -> str:
    try:
        return await call(get_coordinator())
    except GameDesignerError as e:
        logger.warning("Tool %s failed: %s", tool, e)
        raise ToolError(str(e)) from e


async def design_new(sessionName: str, gameDescription: str) -> str:
    """Create a new game design session with a provided description."""
    return await _run(
        "designNew", lambda c: c.create_session(sessionName, gameDescription)
    )


async def design_overview(sessionName: str) -> str:
    """Get the initial game design goals for a session."""
    return await _run("designOverview", lambda c: c.design_overview(sessionName))


async def next_feature(sessionName: str) -> str:
    """Get the detailed specification for the next feature to implement."""
    return await _run("nextFeature", lambda c: c.request_next_feature(sessionName))


async def feature_review(sessionName: str, changesMade: str) -> str:
    """Submit a comprehensive report of changes made for review by the designer LLM.

    `changesMade` is a detailed report of the changes implemented, potentially
    including code snippets.
    """
    return await _run(
        "featureReview", lambda c: c.submit_feature_review(sessionName, changesMade)
    )


async def review_reply(sessionName: str, content: str) -> str:
    """Reply to questions raised by the designer LLM during a feature review."""
    return await _run(
        "reviewReply", lambda c: c.submit_review_reply(sessionName, content)
    )


async def feature_ask(sessionName: str, question: str) -> str:
    """Ask an ad-hoc question about the current feature or design."""
    return await _run("featureAsk", lambda c: c.ask_question(sessionName, question))


# tool name -> (handler, required argument names)
TOOLS: Dict[str, Tuple[Callable[..., Awaitable[str]], Tuple[str, ...]]] = {
    "designNew": (design_new, ("sessionName", "gameDescription")),
    "designOverview": (design_overview, ("sessionName",)),
    "nextFeature": (next_feature, ("sessionName",)),
    "featureReview": (feature_review, ("sessionName", "changesMade")),
    "reviewReply": (review_reply, ("sessionName", "content")),
    "featureAsk": (feature_ask, ("sessionName", "question")),
}


def build_server() -> FastMCP:
    mcp = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)
    for name, (handler, _) in TOOLS.items():
        mcp.add_tool(handler, name=name, description=handler.__doc__)
    return mcp


async def call_tool(name: str, arguments: Dict[str, str]) -> str:
    """Invoke a tool handler directly, as the MCP runtime would."""
    if name not in TOOLS:
        raise ToolError(f"Tool '{name}' not found.")
    handler, required = TOOLS[name]
    missing = [arg for arg in required if not arguments.get(arg)]
    if missing:
        raise ToolError(f"{', '.join(missing)} is required for {name}")
    return await handler(**{arg: arguments[arg] for arg in required})
