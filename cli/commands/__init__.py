"""
Command groups of the plasma CLI.
"""
