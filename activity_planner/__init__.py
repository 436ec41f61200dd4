# ABOUTME: Weather activity planner: geocode a place, fetch current weather, plan activities around it.
