"""Meal plan search with genetic, ant colony and particle swarm metaheuristics."""

__version__ = "0.1.0"
