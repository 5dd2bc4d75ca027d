"""
Local keyword and competitor acquisition engine.
"""
