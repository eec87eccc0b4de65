"""
Configuration files for the bridge and its modules.
"""
