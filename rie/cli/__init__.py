"""
Command-line interface for the Record Import Engine.
"""
