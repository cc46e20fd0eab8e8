"""
Pricing rules — relative-price computation, zone classification, stock gate.
"""
