"""Step tracking state layer.

The tracker is the single owner of the session step count and the only
component that decides when a checkpoint is written. The policy module
holds the pure decisions it relies on.
"""
