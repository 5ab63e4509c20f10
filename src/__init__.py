"""Adaptive sports game predictor: features, ensemble, validation and weight tuning."""
