"""
Generic transforms over raw API payloads.
"""
