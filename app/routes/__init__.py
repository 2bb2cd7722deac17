"""
Routes package - HTTP blueprints
"""
