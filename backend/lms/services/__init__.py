"""
Application services shared by the route modules.
"""
