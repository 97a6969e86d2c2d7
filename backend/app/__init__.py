"""Clinic scheduling backend."""
