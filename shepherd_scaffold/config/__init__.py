"""
Configuration: layout constants, project overrides and the process environment.
"""
