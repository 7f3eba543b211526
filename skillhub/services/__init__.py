"""Services behind the SkillHub API: storage, credentials, dispatch and listings."""
