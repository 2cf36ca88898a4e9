"""Handlers keyed by job type in advisor_desk.jobs.registry."""
