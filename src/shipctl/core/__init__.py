"""Core runtime helpers shared by the image and analysis commands."""
