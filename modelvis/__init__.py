"""Helpers for the Modelling for Visualisation chapter."""
