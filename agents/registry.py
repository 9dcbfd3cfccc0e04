"""Agent registry for looking up agents by name."""

from typing import Dict, Type
from agents.base import BaseAgent


class AgentRegistry:
    """Registry of agent classes and their shared instances."""

    def __init__(self):
        self._agents: Dict[str, Type[BaseAgent]] = {}
        self._instances: Dict[str, BaseAgent] = {}

    def register(self, name: str, agent_class: Type[BaseAgent]):
        self._agents[name] = agent_class

    def get(self, name: str) -> BaseAgent:
        """Get the shared instance of an agent, creating it on first use.

        Raises:
            ValueError: no agent registered under ``name``
        """
        if name not in self._instances:
            if name not in self._agents:
                raise ValueError(f"Agent '{name}' not registered")
            self._instances[name] = self._agents[name]()
        return self._instances[name]

    def list_agents(self) -> list[str]:
        return list(self._agents.keys())


# Global registry instance
registry = AgentRegistry()


def register_agent(name: str):
    """Decorator to register an agent class under ``name``."""
    def decorator(cls: Type[BaseAgent]):
        registry.register(name, cls)
        return cls
    return decorator
