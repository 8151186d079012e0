"""Timed multiple-choice quiz engine with a terminal front end."""
