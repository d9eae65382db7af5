"""Trivia assessment engine."""
