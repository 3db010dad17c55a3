"""
evosim - Evolutionary Ecosystem Simulation

A headless artificial-life sandbox. Creatures with heritable genetics and
small evolvable neural controllers sense a 2D world, feed, fight, breed,
and die under resource and population pressure.

Architecture: Environment is the source of truth. Renderers and loggers are consumers.
"""

__version__ = "0.1.0"
