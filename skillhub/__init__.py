"""SkillHub: capability registry and tool dispatch for agent workflows."""

__version__ = "0.1.0"
