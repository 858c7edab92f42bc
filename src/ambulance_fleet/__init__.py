"""Single-hospital ambulance fleet dispatch simulation."""

__version__ = "0.1.0"
