"""
Point of sale: sales, shifts, held carts and offline replay.
"""
