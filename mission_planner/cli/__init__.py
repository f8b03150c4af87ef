"""
Command-line tools for mission files
"""
