"""Strava activity sync service for the ride program."""
