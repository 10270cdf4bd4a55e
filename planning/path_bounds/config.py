"""
Configuration for the path bounds decider.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class PathBoundsDeciderConfig:
    """Tuning parameters for corridor construction."""

    # Discretization
    horizon_m: float = 100.0
    resolution_m: float = 0.5
    trajectory_time_length_s: float = 8.0

    # ADC footprint
    adc_width_m: float = 2.11
    adc_buffer_m: float = 0.1  # beyond half width, regular attempts
    fallback_adc_buffer_m: float = 0.5  # beyond half width, fallback
    max_lateral_acceleration: float = 1.5  # m/s^2, lateral-speed buffer

    # Obstacle inflation
    obstacle_lon_start_buffer_m: float = 3.0
    obstacle_lon_end_buffer_m: float = 1.0
    obstacle_lat_buffer_m: float = 0.4

    # Strategy selection
    lane_borrow_enabled: bool = False
    min_boundary_stations: int = 2
    min_unblocked_distance_m: float = 5.0

    # Sweep deadline (0 disables)
    sweep_time_budget_s: float = 0.0

    # Map matching
    lane_heading_tolerance_rad: float = math.pi / 2.0

    @property
    def adc_half_width_m(self) -> float:
        return 0.5 * self.adc_width_m

    def validate(self) -> None:
        """Raise ValueError on inconsistent settings."""
        if self.resolution_m <= 0.0:
            raise ValueError(f"resolution_m must be positive, got {self.resolution_m}")
        if self.horizon_m <= 0.0:
            raise ValueError(f"horizon_m must be positive, got {self.horizon_m}")
        if self.adc_width_m <= 0.0:
            raise ValueError(f"adc_width_m must be positive, got {self.adc_width_m}")
        if self.max_lateral_acceleration <= 0.0:
            raise ValueError(
                f"max_lateral_acceleration must be positive, got {self.max_lateral_acceleration}"
            )
        if self.min_boundary_stations < 1:
            raise ValueError(
                f"min_boundary_stations must be >= 1, got {self.min_boundary_stations}"
            )
        for name in (
            "adc_buffer_m",
            "fallback_adc_buffer_m",
            "obstacle_lon_start_buffer_m",
            "obstacle_lon_end_buffer_m",
            "obstacle_lat_buffer_m",
            "min_unblocked_distance_m",
            "sweep_time_budget_s",
        ):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")


def build_path_bounds_config(config: dict) -> PathBoundsDeciderConfig:
    """Build a PathBoundsDeciderConfig from the loaded YAML dictionary."""
    section = (config or {}).get("path_bounds", {}) or {}
    vehicle = (config or {}).get("vehicle", {}) or {}
    defaults = PathBoundsDeciderConfig()

    cfg = PathBoundsDeciderConfig(
        horizon_m=float(section.get("horizon_m", defaults.horizon_m)),
        resolution_m=float(section.get("resolution_m", defaults.resolution_m)),
        trajectory_time_length_s=float(
            section.get("trajectory_time_length_s", defaults.trajectory_time_length_s)
        ),
        adc_width_m=float(section.get("adc_width_m", vehicle.get("width_m", defaults.adc_width_m))),
        adc_buffer_m=float(section.get("adc_buffer_m", defaults.adc_buffer_m)),
        fallback_adc_buffer_m=float(
            section.get("fallback_adc_buffer_m", defaults.fallback_adc_buffer_m)
        ),
        max_lateral_acceleration=float(
            section.get("max_lateral_acceleration", defaults.max_lateral_acceleration)
        ),
        obstacle_lon_start_buffer_m=float(
            section.get("obstacle_lon_start_buffer_m", defaults.obstacle_lon_start_buffer_m)
        ),
        obstacle_lon_end_buffer_m=float(
            section.get("obstacle_lon_end_buffer_m", defaults.obstacle_lon_end_buffer_m)
        ),
        obstacle_lat_buffer_m=float(
            section.get("obstacle_lat_buffer_m", defaults.obstacle_lat_buffer_m)
        ),
        lane_borrow_enabled=bool(section.get("lane_borrow_enabled", defaults.lane_borrow_enabled)),
        min_boundary_stations=int(
            section.get("min_boundary_stations", defaults.min_boundary_stations)
        ),
        min_unblocked_distance_m=float(
            section.get("min_unblocked_distance_m", defaults.min_unblocked_distance_m)
        ),
        sweep_time_budget_s=float(section.get("sweep_time_budget_s", defaults.sweep_time_budget_s)),
        lane_heading_tolerance_rad=float(
            section.get("lane_heading_tolerance_rad", defaults.lane_heading_tolerance_rad)
        ),
    )
    cfg.validate()
    return cfg
