"""Registry of supported coding agents.

Agents are looked up by name in a static table; adding a backend means
adding an ``Agent`` subclass and registering it here.
"""

from __future__ import annotations

from pathlib import Path

from cloudagent.agents.auggie import AuggieAgent
from cloudagent.agents.base import Agent
from cloudagent.agents.claude import ClaudeAgent
from cloudagent.agents.codex import CodexAgent
from cloudagent.core.exceptions import UnknownAgentError

AGENTS: dict[str, type[Agent]] = {
    AuggieAgent.name: AuggieAgent,
    ClaudeAgent.name: ClaudeAgent,
    CodexAgent.name: CodexAgent,
}


def list_agents() -> list[str]:
    """Names of the registered agents."""
    return list(AGENTS)


def get_agent(name: str, home: Path | None = None) -> Agent:
    """Instantiate the agent registered under ``name``.

    Raises:
        UnknownAgentError: If no agent has that name.
    """
    try:
        agent_cls = AGENTS[name.strip().lower()]
    except KeyError:
        raise UnknownAgentError(name, list_agents()) from None
    return agent_cls(home=home)


__all__ = [
    "AGENTS",
    "Agent",
    "AuggieAgent",
    "ClaudeAgent",
    "CodexAgent",
    "get_agent",
    "list_agents",
]
