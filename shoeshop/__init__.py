"""Shoe Shop catalog service and 3D asset pipeline."""
