"""
Location sampling simulator configuration
"""

# Sampling policy configuration
POLICY_CONFIG = {
    "default_interval_ms": 30000,     # baseline interval (ms)
    "default_displacement_m": 10.0,   # baseline minimum displacement (m)
    "critical_battery_level": 0.05,
    "low_battery_level": 0.15,
    "medium_battery_level": 0.30,
    "near_destination_km": 0.5,
    "far_destination_km": 10.0,
}

# Tracking controller configuration
TRACKING_CONFIG = {
    "adaptive": True,                 # re-evaluate policy on every fix
    "high_accuracy": False,           # preset when adaptive is off
    "refresh_battery_on_fix": True,
    "quality_filter": True,           # emit poor-quality advisories
}

# Simulation configuration
SIMULATION_CONFIG = {
    "start": (22.2900, 114.1700),     # (lat, lon) of the first fix
    "destination": (22.3300, 114.2100),
    "fixes": 40,
    "speed_m_s": 8.0,
    "accuracy_m": 8.0,
    "dt_s": 30.0,
    "battery_level": 0.8,
    "battery_drain_per_fix": 0.02,
    "power_save": False,
}

# Logging configuration
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
