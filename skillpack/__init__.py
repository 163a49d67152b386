"""Skillpack: loader, matcher and QA tooling for Agent Skill bundles."""

__version__ = "0.1.0"
