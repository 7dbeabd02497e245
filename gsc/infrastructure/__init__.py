"""
Infrastructure layer: HTTP API, local filesystem and login state
"""
