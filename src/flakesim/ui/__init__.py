"""
Interactive controls for FlakeSim.
"""
