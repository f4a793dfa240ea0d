"""
Physics components for FlakeSim.

Random draws, flake spawning, aerodynamic forces, Euler integration and the
per-frame stepper.
"""
