"""
User interface for the serving manager
"""
