"""
Adaptive Ensemble Kalman Filter

This package contains implementations of:
- The adaptive EnKF with online process noise estimation
- ODE state space models for testing and experiments
- Metrics and plotting utilities
"""
import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
