"""Utility helpers for Todo CLI."""
