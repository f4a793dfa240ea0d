"""
Visualization components for FlakeSim.

This module contains the cone-light brightness model and the matplotlib
renderer that draws flakes, trails, the ground and the light cone.
"""

__all__ = ['lighting', 'renderer']
