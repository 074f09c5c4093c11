"""Agents package: language-model backed helpers."""

from agents.base_agent import BaseAgent
from agents.command_agent import CommandIntent, CommandInterpreter

__all__ = [
    "BaseAgent",
    "CommandIntent",
    "CommandInterpreter",
]
