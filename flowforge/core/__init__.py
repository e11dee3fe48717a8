"""
Core settings

Environment-driven configuration shared by the engine and the API.
"""
