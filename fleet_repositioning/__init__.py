"""Ride-hail fleet repositioning - demand statistics and relocation decisions."""
