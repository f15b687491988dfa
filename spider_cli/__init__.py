"""Finds new episodic releases on the web and hands them to a download service."""

__version__ = "0.3.0"
