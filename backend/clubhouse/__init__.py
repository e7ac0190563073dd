"""Clubhouse: court bookings, memberships, tournaments and club administration."""
