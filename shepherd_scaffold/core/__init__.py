"""
Core building blocks: settings generation, permissions, builds and compose.
"""
