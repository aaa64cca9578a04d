"""
Raw packet decoder for spinning 64-channel range sensors.
"""
