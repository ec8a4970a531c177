"""Deployment worker: stops deployments through an external teardown workflow."""
