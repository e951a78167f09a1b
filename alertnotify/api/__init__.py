"""
alertnotify — HTTP API routers.
"""
