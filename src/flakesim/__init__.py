"""
FlakeSim: falling-flake aerodynamics with cone-light shading.

This package animates a population of independently falling flakes under
simplified drag, lift and wind shear, and shades them with a directional
cone light while parameters are tuned live.
"""

__version__ = "0.1.0"
__author__ = "FlakeSim Team"

__all__ = []
