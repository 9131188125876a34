"""Scheduling core: recurrence matching, day materialization, update planning and applying."""
