"""
Simulation utilities for generating estimator inputs from a known world.

Modules:
    turtle_sim: Differential-drive robot with noisy wheels, slip, collisions
                and a range-limited landmark sensor
    rng: Process-wide, lazily created random generator

The simulator is a test-data generator; the estimator itself is
deterministic and never draws random numbers.
"""

from ekfslam.sim.rng import get_random, seed_random
from ekfslam.sim.turtle_sim import (
    SimulationLog,
    TurtleSim,
    circle_twist,
    encoder_ticks_to_angles,
    simulate,
)

__all__ = [
    "get_random",
    "seed_random",
    "TurtleSim",
    "SimulationLog",
    "circle_twist",
    "encoder_ticks_to_angles",
    "simulate",
]
