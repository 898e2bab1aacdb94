"""Exceptions raised by the simulation engines for API misuse."""
from __future__ import annotations


class RobotEnginesError(Exception):
    """Base error carrying a machine-readable code."""
    code = "robot_sim.error"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownJointError(RobotEnginesError):
    code = "robot_sim.unknown_joint"
    http_status = 404


class UnknownObstacleError(RobotEnginesError):
    code = "robot_sim.unknown_obstacle"
    http_status = 404


class UnknownAnimationError(RobotEnginesError):
    code = "robot_sim.unknown_animation"
    http_status = 404
