"""HTTP API of the SkillHub tool registry."""
